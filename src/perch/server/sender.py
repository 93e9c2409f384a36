"""Writing a ``Response`` to the ASGI ``send`` callable."""

from perch._internal.asgi import Send
from perch.http.response import Response

# Informational responses, 204 and 304 never carry a body
_BODYLESS = frozenset({204, 304})


def _encode_headers(response: Response, length: int) -> list[tuple[bytes, bytes]]:
    pairs: list[tuple[str, str]] = []
    if response.content_type:
        pairs.append(("content-type", response.content_type))
    pairs.extend((name.lower(), value) for name, value in response.headers)
    pairs.extend(("set-cookie", cookie.to_header_value()) for cookie in response.cookies)
    pairs.append(("content-length", str(length)))
    return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in pairs]


async def send_response(response: Response, send: Send) -> int:
    """Send *response* as a start message plus a single body message.

    Returns the number of body bytes written.
    """
    status = response.status
    body = b"" if status < 200 or status in _BODYLESS else response.body_bytes
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": _encode_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": body})
    return len(body)
