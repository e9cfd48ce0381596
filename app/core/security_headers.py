from typing import Iterable, Optional, Tuple

DEFAULT_HEADERS: Tuple[Tuple[bytes, bytes], ...] = (
    (b"X-Content-Type-Options", b"nosniff"),
    (b"X-Frame-Options", b"DENY"),
    (b"X-XSS-Protection", b"1; mode=block"),
    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
)


class SecurityHeadersMiddleware:
    """Appends fixed security headers to every HTTP response, redirects included."""

    def __init__(self, app, headers: Optional[Iterable[Tuple[bytes, bytes]]] = None):
        self.app = app
        self.headers = list(headers or DEFAULT_HEADERS)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend(self.headers)
            await send(message)

        await self.app(scope, receive, send_with_headers)
