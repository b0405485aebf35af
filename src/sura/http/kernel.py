"""HTTP kernel: routes a Request through the middleware pipeline to its handler.

Middleware wraps the handler in reverse registration order, so the first
middleware in the list sees the request first and the response last. Global
middleware runs outside any middleware attached to the matched route.
"""

from __future__ import annotations

import inspect
import typing
from http import HTTPStatus
from typing import Any, Awaitable, Callable, Iterable

from sura.container import Container, service_type, signature_hints
from sura.exceptions import HttpError, ValidationError
from sura.http.request import Request, reset_current_request, set_current_request
from sura.http.response import Response
from sura.logging_utils import create_service_logger
from sura.routing.router import Router

logger = create_service_logger("sura.kernel")

Handler = Callable[[Request], Awaitable[Response]]

_EMPTY = inspect.Parameter.empty
_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


class Kernel:
    def __init__(
        self,
        container: Container,
        middleware: Iterable[Any] = (),
        controller_namespace: str = "",
    ) -> None:
        self.container = container
        self.middleware: list[Any] = list(middleware)
        self.controller_namespace = controller_namespace.rstrip(".")

    def push_middleware(self, middleware: Any) -> None:
        """Append ``middleware`` (innermost) unless already registered."""
        if middleware not in self.middleware:
            self.middleware.append(middleware)

    def prepend_middleware(self, middleware: Any) -> None:
        """Insert ``middleware`` as the outermost stage unless already registered."""
        if middleware not in self.middleware:
            self.middleware.insert(0, middleware)

    async def handle(self, request: Request) -> Response:
        """Turn ``request`` into a response; never raises."""
        token = set_current_request(request)
        try:
            try:
                response = await self._dispatch(request)
            except HttpError as e:
                response = self.error_response(request, e)
            except Exception as e:
                self._log_exception(request, e)
                response = Response("Internal Server Error", 500)

            for cookie in request.state.pop("queued_cookies", []):
                response.cookies.append(cookie)
            return response
        finally:
            reset_current_request(token)

    async def _dispatch(self, request: Request) -> Response:
        router: Router = self.container.get(Router)
        found = router.match(request.method, request.path)

        if found is None:
            allowed = router.allowed_methods(request.path)
            if allowed:
                raise HttpError(405, "Method Not Allowed", {"Allow": ", ".join(allowed)})
            raise HttpError(404, "Not Found")

        route, params = found
        request.state["route"] = route
        request.state["route_params"] = params
        for name, value in params.items():
            request = request.with_attribute(name, value)
        set_current_request(request)

        async def core(req: Request) -> Response:
            set_current_request(req)
            return await self.invoke_handler(route.handler, req)

        pipeline: Handler = core
        for middleware in reversed([*self.middleware, *route.middleware]):
            pipeline = self._wrap(middleware, pipeline)

        return self.to_response(await pipeline(request))

    def _wrap(self, middleware: Any, next_handler: Handler) -> Handler:
        async def stage(request: Request) -> Response:
            instance = middleware
            if isinstance(middleware, (type, str)):
                instance = self.container.make(middleware)

            handle = getattr(instance, "handle", instance)
            result = handle(request, next_handler)
            if inspect.isawaitable(result):
                result = await result
            return self.to_response(result)

        return stage

    # Handlers

    async def invoke_handler(self, handler: Any, request: Request) -> Response:
        target = self._resolve_handler(handler, request)
        args, kwargs = self.resolve_callable_parameters(target, request)
        result = target(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return self.to_response(result)

    def _resolve_handler(self, handler: Any, request: Request) -> Callable[..., Any]:
        if isinstance(handler, str):
            if "@" not in handler:
                raise TypeError(f"Route handler string must be 'Controller@method', got '{handler}'")
            controller, method = handler.split("@", 1)
            handler = (self._qualify(controller), method)

        if isinstance(handler, (tuple, list)):
            controller, method = handler
            if isinstance(controller, (type, str)):
                controller = self.container.make(controller, {"request": request})
            bound = getattr(controller, method, None)
            if bound is None or not callable(bound):
                raise AttributeError(
                    f"Method {type(controller).__qualname__}.{method}() not found"
                )
            return bound

        if not callable(handler):
            raise TypeError(f"Unsupported route handler {handler!r}")
        return handler

    def _qualify(self, controller: str) -> str:
        if not self.controller_namespace or "." in controller or ":" in controller:
            return controller
        return f"{self.controller_namespace}.{controller}"

    def resolve_callable_parameters(
        self, fn: Callable[..., Any], request: Request
    ) -> tuple[list[Any], dict[str, Any]]:
        """Arguments for a handler.

        Per parameter: the Request by annotation, a route parameter by name,
        ``params`` for the whole route-parameter map, a container service by
        annotation, the default, otherwise None.
        """
        sig, hints = signature_hints(fn)
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for param in sig.parameters.values():
            if param.kind in _VARIADIC:
                continue
            name = param.name
            annotation = hints.get(name, _EMPTY)
            wanted = service_type(annotation)

            if wanted is not None and issubclass(wanted, Request):
                value: Any = request
            elif name in request.attributes:
                value = _coerce(request.attributes[name], annotation)
            elif name == "params" and "route_params" in request.state:
                value = dict(request.state["route_params"])
            elif wanted is not None and self.container.has(wanted):
                value = self.container.get(wanted)
            elif param.default is not _EMPTY:
                value = param.default
            else:
                value = None

            if param.kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[name] = value
            else:
                args.append(value)
        return args, kwargs

    # Responses

    def to_response(self, result: Any) -> Response:
        if isinstance(result, Response):
            return result
        if isinstance(result, tuple) and len(result) == 2 and isinstance(result[1], int):
            response = self.to_response(result[0])
            response.status = result[1]
            return response
        if result is None:
            return Response()
        if isinstance(result, (dict, list)):
            return Response().json(result)
        if isinstance(result, (str, bytes)):
            return Response(result)
        return Response(str(result))

    def error_response(self, request: Request, error: HttpError) -> Response:
        if isinstance(error, ValidationError):
            response = Response().json(error.to_dict(), error.status_code)
        else:
            message = error.message or _reason(error.status_code)
            if request.wants_json():
                response = Response().json({"message": message}, error.status_code)
            else:
                response = Response(message, error.status_code)
        for name, value in error.headers.items():
            response.set_header(name, value)
        return response

    def _log_exception(self, request: Request, error: Exception) -> None:
        log = self.container.get("logger") if self.container.has("logger") else logger
        log.error(
            "Unhandled exception while handling request",
            error=str(error),
            error_type=type(error).__name__,
            http_method=request.method,
            http_path=request.path,
            exc_info=error,
        )


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _coerce(value: Any, annotation: Any) -> Any:
    """Convert a route parameter to an ``int``/``float`` annotation; bad input is a 404."""
    origin = typing.get_origin(annotation)
    if origin is not None:
        members = [a for a in typing.get_args(annotation) if a is not type(None)]
        annotation = members[0] if len(members) == 1 else _EMPTY
    if annotation in (int, float) and isinstance(value, str):
        try:
            return annotation(value)
        except ValueError as e:
            raise HttpError(404, "Not Found") from e
    return value
