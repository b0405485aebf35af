"""Request record passed through the middleware pipeline to handlers.

A Request is treated as immutable: ``with_attribute`` returns a copy. The
``state`` dict and the session are shared between copies so that values set
deep in the pipeline (queued cookies, the resolved user) are visible to the
outer middleware.
"""

from __future__ import annotations

import json
import re
from contextvars import ContextVar, Token
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Iterable

from sura.exceptions import HttpError
from sura.http.user_agent import UserAgent
from sura.support import text

if TYPE_CHECKING:
    from quart import Request as QuartRequest

    from sura.session.session import Session

_FORM_MIMETYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")

_current_request: ContextVar[Request | None] = ContextVar("sura_current_request", default=None)


def current_request() -> Request:
    """Request being handled by the current task."""
    request = _current_request.get()
    if request is None:
        raise RuntimeError("No request is being handled in this context")
    return request


def set_current_request(request: Request | None) -> Token[Request | None]:
    return _current_request.set(request)


def reset_current_request(token: Token[Request | None]) -> None:
    _current_request.reset(token)


def is_blank(value: Any) -> bool:
    """Emptiness the way form handling treats it: ``""``, ``"0"``, 0, None and empty containers."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value in ("", "0")
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def to_int(value: Any) -> int:
    """Coerce loosely: leading digits of a string, truthiness of a container."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", "replace")
    if isinstance(value, str):
        match = _INT_PREFIX_RE.match(value)
        return int(match.group(1)) if match else 0
    if isinstance(value, (list, tuple, dict, set)):
        return 1 if value else 0
    return 0


def _flatten(pairs: Iterable[tuple[str, list[str]]]) -> dict[str, Any]:
    """Collapse multi-dict lists: single values stay scalar, ``name[]`` keys stay lists."""
    flat: dict[str, Any] = {}
    for key, values in pairs:
        if key.endswith("[]"):
            flat[key[:-2]] = list(values)
        elif len(values) > 1:
            flat[key] = list(values)
        elif values:
            flat[key] = values[0]
    return flat


@dataclass
class Request:
    method: str = "GET"
    path: str = "/"
    query: dict[str, Any] = field(default_factory=dict)
    form: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    attributes: dict[str, Any] = field(default_factory=dict)
    session: Session | None = None
    state: dict[str, Any] = field(default_factory=dict)
    remote_addr: str | None = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {name.lower(): value for name, value in self.headers.items()}

    @classmethod
    async def from_quart(cls, request: QuartRequest) -> Request:
        """Snapshot a Quart request into a framework Request."""
        form: dict[str, Any] = {}
        body = b""
        if request.mimetype in _FORM_MIMETYPES:
            form = _flatten((await request.form).lists())
        else:
            body = await request.get_data(cache=True)

        return cls(
            method=request.method,
            path=request.path,
            query=_flatten(request.args.lists()),
            form=form,
            headers=dict(request.headers.items()),
            cookies=dict(request.cookies),
            body=body,
            remote_addr=request.remote_addr,
        )

    # Attributes

    def with_attribute(self, name: str, value: Any) -> Request:
        return replace(self, attributes={**self.attributes, name: value})

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    # Input

    def input(self, name: str, default: Any = None) -> Any:
        """Form value, then query value, then ``default``."""
        if name in self.form:
            return self.form[name]
        return self.query.get(name, default)

    def filter(self, source: str, max_length: int = 25000, strip_tags: bool = False) -> str:
        """Sanitised input value for HTML output; ``""`` when absent or blank."""
        if not source:
            return ""
        value = self.form.get(source)
        if is_blank(value):
            value = self.query.get(source)
            if is_blank(value):
                return ""
        if isinstance(value, (list, tuple, dict)):
            return ""
        return self.text_filter(str(value), max_length, strip_tags)

    @staticmethod
    def text_filter(input_text: str, max_length: int = 25000, strip_tags: bool = False) -> str:
        return text.text_filter(input_text, max_length, strip_tags)

    def get_int(self, source: str, default: int = 0) -> int:
        if self.form.get(source) is not None:
            return to_int(self.form[source])
        if self.query.get(source) is not None:
            return to_int(self.query[source])
        return default

    def check_ajax(self) -> bool:
        if self.form.get("ajax") == "yes":
            return True
        return (self.header("x-requested-with") or "").lower() == "xmlhttprequest"

    def wants_json(self) -> bool:
        accept = self.header("accept") or ""
        return "application/json" in accept or self.check_ajax()

    def json(self) -> Any:
        """Decoded JSON body, ``None`` when the body is empty."""
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise HttpError(400, "Malformed JSON body") from e

    # Headers and cookies

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    def cookie(self, name: str, default: str | None = None) -> str | None:
        return self.cookies.get(name, default)

    @property
    def host(self) -> str:
        return self.header("host") or ""

    @property
    def user_agent(self) -> UserAgent:
        return UserAgent(self.header("user-agent") or "")
