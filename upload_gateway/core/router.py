"""Router with request-scoped logging, an error boundary and response handling."""

import inspect
import time
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
import structlog
from pydantic import BaseModel
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod

from upload_gateway.core.logger import LogIcon, logger

JSON_HEADERS = {"content-type": "application/json"}


def json_response(status_code: int, payload: BaseModel | dict, headers: dict[str, str] | None = None) -> Response:
    """Build a JSON Response; pydantic models are dumped by alias."""
    match payload:
        case BaseModel():
            body = payload.model_dump_json(by_alias=True)
        case _:
            body = orjson.dumps(payload).decode()
    return Response(status_code=status_code, headers={**JSON_HEADERS, **(headers or {})}, description=body)


def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case BaseModel() | dict():
            return json_response(status_codes.HTTP_200_OK, result)
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={},
                description=str(result),
            )


def internal_error_response() -> Response:
    return json_response(status_codes.HTTP_500_INTERNAL_SERVER_ERROR, {"error": "Internal server error"})


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
)


def _create_method_wrapper(original_method: Callable, router_prefix: str = "") -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, **kwargs) -> Callable:
        endpoint = args[0] if args else kwargs.get("endpoint", "")
        full_path = f"{router_prefix}{endpoint}".replace("//", "/")
        decorator = original_method(*args, **kwargs)

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            has_request_param = "request" in sig.parameters

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                started = time.perf_counter()
                method = getattr(request, "method", "")
                with structlog.contextvars.bound_contextvars(
                    request_id=uuid.uuid4().hex[:12], method=method, path=full_path
                ):
                    # Pass request to handler only if it declared it
                    if has_request_param:
                        h_kwargs["request"] = request

                    try:
                        response = parse_response(await handler(**h_kwargs))
                    except Exception as ex:
                        logger.error("Unhandled handler error", icon=LogIcon.ERROR, error=repr(ex))
                        response = internal_error_response()

                    logger.info(
                        "Request completed",
                        icon=LogIcon.LATENCY,
                        status=response.status_code,
                        duration_ms=round((time.perf_counter() - started) * 1000, 1),
                    )
                    return response

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            new_params.extend(param for name, param in sig.parameters.items() if name != "request")

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """SubRouter whose handlers are timed, bound to a request id and never leak exceptions."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._prefix = kwargs.get("prefix", "")
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with the request boundary."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, self._prefix)
                setattr(self, method_name, wrapped_method)
