"""
Unit tests for the HTTP kernel: dispatching, middleware ordering, handler
argument resolution, return-value conversion and error handling.
"""

from __future__ import annotations

import sys
import types
from typing import Any
from unittest.mock import MagicMock

import pytest

from sura.container import Container
from sura.exceptions import HttpError, ValidationError, abort
from sura.http.kernel import Kernel
from sura.http.request import Request, current_request
from sura.http.response import Response
from sura.mvc.controller import BaseController
from sura.routing.router import Router
from sura.support.cookie import Cookie
from tests.helpers import make_request


class ItemController(BaseController):
    def show(self, id: int) -> Response:
        return self.json({"id": id, "path": self.request.path})

    def listing(self) -> Response:
        return self.set("count", 2).with_data({"page": 1}).json()


class CountingMiddleware:
    instances = 0

    def __init__(self) -> None:
        CountingMiddleware.instances += 1

    async def handle(self, request: Request, next: Any) -> Response:
        response = await next(request)
        response.set_header("X-Counted", str(CountingMiddleware.instances))
        return response


def recording(calls: list[str], name: str):
    async def middleware(request: Request, next: Any) -> Response:
        calls.append(f"{name}:before")
        response = await next(request)
        calls.append(f"{name}:after")
        return response

    return middleware


@pytest.fixture
def router(container: Container) -> Router:
    router = Router()
    container.instance(Router, router)
    return router


@pytest.fixture
def kernel(container: Container, router: Router) -> Kernel:
    return Kernel(container)


class TestDispatch:
    """Test suite for routing requests to handlers."""

    async def test_string_result(self, kernel: Kernel, router: Router) -> None:
        router.get("/", lambda: "home")

        response = await kernel.handle(make_request("GET", "/"))

        assert response.status == 200
        assert response.body == "home"

    async def test_async_handler(self, kernel: Kernel, router: Router) -> None:
        async def handler() -> str:
            return "async"

        router.get("/async", handler)

        response = await kernel.handle(make_request("GET", "/async"))

        assert response.body == "async"

    async def test_not_found(self, kernel: Kernel) -> None:
        response = await kernel.handle(make_request("GET", "/missing"))

        assert response.status == 404
        assert response.body == "Not Found"

    async def test_method_not_allowed(self, kernel: Kernel, router: Router) -> None:
        router.post("/items", lambda: "created")

        response = await kernel.handle(make_request("GET", "/items"))

        assert response.status == 405
        assert response.header("Allow") == "POST"

    async def test_head_uses_get_route(self, kernel: Kernel, router: Router) -> None:
        router.get("/page", lambda: "page")

        response = await kernel.handle(make_request("HEAD", "/page"))

        assert response.status == 200

    async def test_route_params_are_coerced(self, kernel: Kernel, router: Router) -> None:
        def show(id: int, slug: str) -> dict[str, Any]:
            return {"id": id, "slug": slug}

        router.get(r"/posts/{id:\d+}/{slug}", show)

        response = await kernel.handle(make_request("GET", "/posts/12/hello"))

        assert response.body == '{"id": 12, "slug": "hello"}'

    async def test_bad_numeric_param_is_not_found(self, kernel: Kernel, router: Router) -> None:
        def show(id: int) -> str:
            return str(id)

        router.get("/users/{id}", show)

        response = await kernel.handle(make_request("GET", "/users/abc"))

        assert response.status == 404

    async def test_positional_params_argument(self, kernel: Kernel, router: Router) -> None:
        def news(params: dict[str, str]) -> dict[str, str]:
            return params

        router.add({"/news/:num": news})

        response = await kernel.handle(make_request("GET", "/news/5"))

        assert response.body == '{"0": "5"}'

    async def test_request_and_services_are_injected(
        self, kernel: Kernel, router: Router
    ) -> None:
        seen: dict[str, Any] = {}

        def handler(request: Request, routes: Router, missing: str = "default") -> str:
            seen.update(request=request, routes=routes, missing=missing)
            return "ok"

        router.get("/users/{id}", handler)

        await kernel.handle(make_request("GET", "/users/3"))

        assert seen["request"].get_attribute("id") == "3"
        assert seen["routes"] is router
        assert seen["missing"] == "default"

    async def test_current_request_inside_handler(self, kernel: Kernel, router: Router) -> None:
        router.get("/who", lambda: current_request().path)

        response = await kernel.handle(make_request("GET", "/who"))

        assert response.body == "/who"
        with pytest.raises(RuntimeError):
            current_request()


class TestControllers:
    """Test suite for controller handlers."""

    async def test_tuple_handler(self, kernel: Kernel, router: Router) -> None:
        router.get("/items/{id}", (ItemController, "show"))

        response = await kernel.handle(make_request("GET", "/items/4"))

        assert response.body == '{"id": 4, "path": "/items/4"}'

    async def test_string_handler_with_namespace(
        self, container: Container, router: Router, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Arrange
        module = types.ModuleType("app_controllers")
        module.ItemController = ItemController
        monkeypatch.setitem(sys.modules, "app_controllers", module)
        kernel = Kernel(container, controller_namespace="app_controllers")
        router.get("/items", "ItemController@listing")

        # Act
        response = await kernel.handle(make_request("GET", "/items"))

        # Assert
        assert response.body == '{"count": 2, "page": 1}'

    async def test_missing_controller_method_is_500(
        self, container: Container, kernel: Kernel, router: Router
    ) -> None:
        logger = MagicMock()
        container.instance("logger", logger)
        router.get("/broken", (ItemController, "nope"))

        response = await kernel.handle(make_request("GET", "/broken"))

        assert response.status == 500
        assert logger.error.call_args.kwargs["error_type"] == "AttributeError"

    async def test_handler_string_without_method(self, kernel: Kernel, router: Router) -> None:
        router.get("/bad", "ItemController")

        response = await kernel.handle(make_request("GET", "/bad"))

        assert response.status == 500


class TestMiddleware:
    """Test suite for the middleware pipeline."""

    async def test_registration_order(self, container: Container, router: Router) -> None:
        # Arrange
        calls: list[str] = []
        kernel = Kernel(container, [recording(calls, "first"), recording(calls, "second")])

        def handler() -> str:
            calls.append("handler")
            return "ok"

        router.get("/", handler, middleware=[recording(calls, "route")])

        # Act
        await kernel.handle(make_request())

        # Assert
        assert calls == [
            "first:before",
            "second:before",
            "route:before",
            "handler",
            "route:after",
            "second:after",
            "first:after",
        ]

    async def test_short_circuit(self, container: Container, router: Router) -> None:
        handler = MagicMock(return_value="never")

        async def deny(request: Request, next: Any) -> Response:
            return Response("blocked", 403)

        kernel = Kernel(container, [deny])
        router.get("/", handler)

        response = await kernel.handle(make_request())

        assert response.status == 403
        handler.assert_not_called()

    async def test_class_middleware_built_per_request(
        self, container: Container, router: Router
    ) -> None:
        CountingMiddleware.instances = 0
        kernel = Kernel(container, [CountingMiddleware])
        router.get("/", lambda: "ok")

        await kernel.handle(make_request())
        response = await kernel.handle(make_request())

        assert response.header("X-Counted") == "2"

    async def test_middleware_return_values_are_converted(
        self, container: Container, router: Router
    ) -> None:
        async def raw(request: Request, next: Any) -> dict[str, bool]:
            return {"raw": True}

        kernel = Kernel(container, [raw])
        router.get("/", lambda: "ok")

        response = await kernel.handle(make_request())

        assert response.body == '{"raw": true}'

    def test_push_and_prepend_ignore_duplicates(self, container: Container) -> None:
        kernel = Kernel(container, ["a"])

        kernel.push_middleware("b")
        kernel.push_middleware("a")
        kernel.prepend_middleware("c")
        kernel.prepend_middleware("b")

        assert kernel.middleware == ["c", "a", "b"]

    async def test_not_found_bypasses_middleware(
        self, container: Container, router: Router
    ) -> None:
        calls: list[str] = []
        kernel = Kernel(container, [recording(calls, "outer")])

        response = await kernel.handle(make_request("GET", "/missing"))

        assert response.status == 404
        assert calls == []


class TestResultConversion:
    """Test suite for converting handler results into responses."""

    @pytest.mark.parametrize(
        "result, status, body",
        [
            ("text", 200, b"text"),
            (b"bytes", 200, b"bytes"),
            (None, 200, b""),
            ({"a": 1}, 200, b'{"a": 1}'),
            ([1, 2], 200, b"[1, 2]"),
            (("created", 201), 201, b"created"),
            (42, 200, b"42"),
        ],
    )
    def test_to_response(self, kernel: Kernel, result: Any, status: int, body: bytes) -> None:
        response = kernel.to_response(result)

        assert response.status == status
        assert response.get_body() == body

    def test_response_is_passed_through(self, kernel: Kernel) -> None:
        response = Response("x")

        assert kernel.to_response(response) is response


class TestErrors:
    """Test suite for error handling."""

    async def test_http_error(self, kernel: Kernel, router: Router) -> None:
        router.get("/secret", lambda: abort(403, "Forbidden zone"))

        response = await kernel.handle(make_request("GET", "/secret"))

        assert response.status == 403
        assert response.body == "Forbidden zone"

    async def test_http_error_without_message_uses_reason(
        self, kernel: Kernel, router: Router
    ) -> None:
        def handler() -> None:
            raise HttpError(418)

        router.get("/tea", handler)

        response = await kernel.handle(make_request("GET", "/tea"))

        assert response.status == 418
        assert response.body == "I'm a Teapot"

    async def test_http_error_as_json_for_ajax(self, kernel: Kernel, router: Router) -> None:
        router.get("/secret", lambda: abort(401, "Login required", {"WWW-Authenticate": "Basic"}))
        request = make_request("GET", "/secret", headers={"Accept": "application/json"})

        response = await kernel.handle(request)

        assert response.status == 401
        assert response.body == '{"message": "Login required"}'
        assert response.header("WWW-Authenticate") == "Basic"

    async def test_validation_error(self, kernel: Kernel, router: Router) -> None:
        def handler() -> None:
            raise ValidationError({"email": ["The email field is required."]})

        router.post("/signup", handler)

        response = await kernel.handle(make_request("POST", "/signup"))

        assert response.status == 422
        assert response.body == (
            '{"message": "Validation failed", "errors": '
            '{"email": ["The email field is required."]}}'
        )

    async def test_unhandled_exception_is_logged(
        self, container: Container, kernel: Kernel, router: Router
    ) -> None:
        # Arrange
        logger = MagicMock()
        container.instance("logger", logger)

        def handler() -> None:
            raise RuntimeError("database exploded")

        router.get("/boom", handler)

        # Act
        response = await kernel.handle(make_request("GET", "/boom"))

        # Assert
        assert response.status == 500
        assert response.body == "Internal Server Error"
        logger.error.assert_called_once()
        kwargs = logger.error.call_args.kwargs
        assert kwargs["error"] == "database exploded"
        assert kwargs["http_path"] == "/boom"


class TestQueuedCookies:
    """Test suite for cookies queued during a request."""

    async def test_queued_cookie_lands_on_response(self, kernel: Kernel, router: Router) -> None:
        def handler() -> str:
            Cookie.append("theme", "dark", 30)
            return "ok"

        router.get("/", handler)

        response = await kernel.handle(make_request())

        assert [c["key"] for c in response.cookies] == ["theme"]
        assert response.cookies[0]["domain"] == "example.test"

    async def test_queued_cookie_survives_errors(self, kernel: Kernel, router: Router) -> None:
        def handler() -> None:
            Cookie.remove("session_hint")
            abort(400, "Bad")

        router.get("/", handler)

        response = await kernel.handle(make_request())

        assert response.status == 400
        assert response.cookies[0]["key"] == "session_hint"
        assert response.cookies[0]["max_age"] == 0
