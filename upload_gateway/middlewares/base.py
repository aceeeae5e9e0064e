"""Middleware hooks and their registration on the Robyn app."""

from abc import ABC, abstractmethod

from robyn import Request, Response, Robyn

from upload_gateway.core.logger import LogIcon, logger


def request_path(request: Request) -> str:
    return request.url.path


class BaseMiddleware(ABC):
    """A before-request hook bound to a set of endpoints."""

    def __init__(self, endpoints: frozenset[str] | list[str]) -> None:
        self.endpoints = frozenset(endpoints)

    def applies_to(self, request: Request) -> bool:
        return request_path(request) in self.endpoints

    @abstractmethod
    def before(self, request: Request) -> Request | Response:
        """Return the Request to continue or a Response to short-circuit."""


class MiddlewareHandler:
    """Registers middleware instances on a Robyn application.

    Hooks are registered globally and filter on the request path themselves,
    so they run for every HTTP method of their endpoints.
    """

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._middlewares: list[BaseMiddleware] = []

    @property
    def middlewares(self) -> list[BaseMiddleware]:
        return list(self._middlewares)

    def register(self, middleware: BaseMiddleware) -> "MiddlewareHandler":
        """Register a middleware instance. Returns self for chaining."""
        if not middleware.endpoints:
            raise ValueError(f"{middleware.__class__.__name__} declares no endpoints")

        @self._app.before_request()
        async def before_wrapper(request: Request) -> Request | Response:
            if not middleware.applies_to(request):
                return request
            return middleware.before(request)

        self._middlewares.append(middleware)
        logger.info(
            f"Registered middleware: {middleware.__class__.__name__}",
            icon=LogIcon.ADAPTER,
            endpoints=sorted(middleware.endpoints),
        )
        return self
