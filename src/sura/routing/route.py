"""A single route: HTTP methods, a compiled path pattern and its handler.

Patterns mix literal text with placeholders:

* ``{id}``            one path segment, passed as ``id``
* ``{id:\\d+}``        custom regex, passed as ``id``
* ``:seg`` ``:num`` ``:any``   positional placeholders, passed as ``"0"``, ``"1"`` ...

Literal text is used as regex source, so legacy patterns such as
``/news/(\\d+)`` keep working.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

ANY_METHOD = "*"
HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")

LEGACY_PLACEHOLDERS = {
    ":seg": "([^/]+)",
    ":num": "([0-9]+)",
    ":any": "(.+)",
}

_REGEX_META = set(".^$*+?()[]{}|\\")


@dataclass(frozen=True)
class _Token:
    kind: str  # "literal" | "param" | "legacy"
    value: str
    regex: str = ""


def tokenize(pattern: str) -> list[_Token]:
    tokens: list[_Token] = []
    literal: list[str] = []

    def flush() -> None:
        if literal:
            tokens.append(_Token("literal", "".join(literal)))
            literal.clear()

    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "{":
            depth, j = 1, i + 1
            while j < len(pattern) and depth:
                if pattern[j] == "{":
                    depth += 1
                elif pattern[j] == "}":
                    depth -= 1
                j += 1
            if depth:
                raise ValueError(f"Unbalanced braces in route pattern '{pattern}'")
            name, _, regex = pattern[i + 1 : j - 1].partition(":")
            name = name.strip()
            if not name.isidentifier():
                raise ValueError(f"Invalid parameter name '{name}' in route pattern '{pattern}'")
            flush()
            tokens.append(_Token("param", name, regex or "[^/]+"))
            i = j
            continue
        if char == ":":
            placeholder = next(
                (p for p in LEGACY_PLACEHOLDERS if pattern.startswith(p, i)), None
            )
            if placeholder is not None:
                flush()
                tokens.append(_Token("legacy", placeholder, LEGACY_PLACEHOLDERS[placeholder]))
                i += len(placeholder)
                continue
        literal.append(char)
        i += 1
    flush()
    return tokens


@dataclass
class Route:
    methods: frozenset[str]
    pattern: str
    handler: Any
    name: str | None = None
    middleware: list[Any] = field(default_factory=list)
    tokens: list[_Token] = field(init=False, repr=False)
    regex: re.Pattern[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.methods = frozenset(m.upper() for m in self.methods)
        self.tokens = tokenize(self.pattern)
        source = []
        for token in self.tokens:
            if token.kind == "literal":
                source.append(token.value)
            elif token.kind == "param":
                source.append(f"(?P<{token.value}>{token.regex})")
            else:
                source.append(token.regex)
        self.regex = re.compile("".join(source))

    @property
    def is_static(self) -> bool:
        """Plain path with no placeholders or regex syntax; matched by equality."""
        return all(
            t.kind == "literal" and not (_REGEX_META & set(t.value)) for t in self.tokens
        )

    def allows(self, method: str) -> bool:
        method = method.upper()
        if ANY_METHOD in self.methods or method in self.methods:
            return True
        return method == "HEAD" and "GET" in self.methods

    def allowed_methods(self) -> set[str]:
        if ANY_METHOD in self.methods:
            return set(HTTP_METHODS)
        methods = set(self.methods)
        if "GET" in methods:
            methods.add("HEAD")
        return methods

    def match(self, path: str) -> dict[str, str] | None:
        """Route parameters when ``path`` matches, else None."""
        if self.is_static:
            return {} if path == self.pattern else None

        match = self.regex.fullmatch(path)
        if match is None:
            return None

        names = {index: name for name, index in self.regex.groupindex.items()}
        params: dict[str, str] = {}
        position = 0
        for index in range(1, self.regex.groups + 1):
            value = match.group(index)
            if index in names:
                if value is not None:
                    params[names[index]] = value
                continue
            if value is not None:
                params[str(position)] = value
            position += 1
        return params

    def build_path(self, params: dict[str, Any]) -> str:
        parts = []
        for token in self.tokens:
            if token.kind == "literal":
                parts.append(token.value)
            elif token.kind == "param":
                if token.value not in params:
                    raise ValueError(
                        f"Missing parameter '{token.value}' for route '{self.name or self.pattern}'"
                    )
                parts.append(quote(str(params[token.value]), safe=""))
            else:
                raise ValueError(
                    f"Route '{self.name or self.pattern}' uses positional placeholders "
                    "and cannot be reversed"
                )
        return "".join(parts)
