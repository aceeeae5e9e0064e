"""Origin allow-listing for browser callers."""

from robyn import Request, Response, status_codes

from upload_gateway.core.logger import LogIcon, logger
from upload_gateway.core.settings import Settings
from upload_gateway.middlewares.base import BaseMiddleware

CORS_REJECTED_MESSAGE = "Not allowed by CORS"


class CorsPolicy:
    """Allow-list of origins; requests without an Origin header are always allowed."""

    def __init__(
        self,
        origins: list[str],
        methods: list[str] | None = None,
        headers: list[str] | None = None,
        credentials: bool = True,
    ) -> None:
        self.origins = frozenset(origins)
        self.methods = methods or ["GET", "POST", "OPTIONS"]
        self.headers = headers or ["Content-Type", "Authorization"]
        self.credentials = credentials

    @classmethod
    def from_settings(cls, st: Settings) -> "CorsPolicy":
        return cls(
            origins=st.CORS_ORIGINS,
            methods=st.CORS_METHODS,
            headers=st.CORS_HEADERS,
            credentials=st.CORS_CREDENTIALS,
        )

    def is_allowed(self, origin: str | None) -> bool:
        return not origin or origin in self.origins

    def response_headers(self, origin: str | None) -> dict[str, str]:
        """Headers for a response to ``origin``; empty for non-browser callers."""
        if not origin or origin not in self.origins:
            return {}
        headers = {
            "Access-Control-Allow-Origin": origin,
            "Vary": "Origin",
        }
        if self.credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        return headers

    def preflight_headers(self, origin: str | None) -> dict[str, str]:
        headers = self.response_headers(origin)
        if headers:
            headers["Access-Control-Allow-Methods"] = ", ".join(self.methods)
            headers["Access-Control-Allow-Headers"] = ", ".join(self.headers)
        return headers


def request_origin(request: Request) -> str | None:
    return request.headers.get("origin")


class CorsMiddleware(BaseMiddleware):
    """Rejects requests from origins outside the allow-list before they reach a handler."""

    def __init__(self, policy: CorsPolicy, endpoints: list[str]) -> None:
        super().__init__(endpoints)
        self.policy = policy

    def before(self, request: Request) -> Request | Response:
        origin = request_origin(request)
        if self.policy.is_allowed(origin):
            return request
        logger.warning("Origin rejected", icon=LogIcon.FORBIDDEN, origin=origin)
        return Response(
            status_code=status_codes.HTTP_403_FORBIDDEN,
            headers={"content-type": "text/plain"},
            description=CORS_REJECTED_MESSAGE,
        )
