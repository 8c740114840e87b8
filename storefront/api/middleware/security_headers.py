from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from storefront.core.config import settings

# Media uploads are the largest bodies we accept, plus multipart overhead
MAX_BODY_SIZE = (settings.max_media_size_mb + 1) * 1024 * 1024

_STATIC_PREFIX = "/uploads/"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")
        if content_length:
            if not content_length.isdigit():
                return JSONResponse(
                    status_code=400, content={"detail": "Invalid Content-Length header"}
                )
            if int(content_length) > MAX_BODY_SIZE:
                return JSONResponse(
                    status_code=413, content={"detail": "Request body too large"}
                )

        response = await call_next(request)
        headers = response.headers
        headers["X-Content-Type-Options"] = "nosniff"
        headers["X-Frame-Options"] = "DENY"
        headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if request.url.path.startswith(_STATIC_PREFIX):
            # Product and media images are embedded by the storefront
            headers["Cache-Control"] = "public, max-age=86400, immutable"
            headers["Cross-Origin-Resource-Policy"] = "cross-origin"
        else:
            headers["Cache-Control"] = "no-store"
            headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        if request.headers.get("x-forwarded-proto", request.url.scheme) == "https":
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
