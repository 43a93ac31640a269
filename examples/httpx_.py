import logging

import httpx

from reqprint.httpx import CACHE_KEY_EXTENSION, fingerprint_hook

logging.basicConfig(level=logging.DEBUG)

with httpx.Client(event_hooks={"request": [fingerprint_hook]}) as client:
    response = client.get("https://www.example.com", headers={"Range": "bytes=0-99"})
    print(response.request.extensions[CACHE_KEY_EXTENSION])
