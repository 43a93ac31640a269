__all__ = ("ReqprintError", "ParseError", "ValidationError")


class ReqprintError(Exception): ...


class ParseError(ReqprintError): ...


class ValidationError(ReqprintError): ...
