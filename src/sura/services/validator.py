"""Rule-based validation of input mappings.

Rules are given per field as a ``|``-separated string or a list:

    validator.validate(form, {"email": "required|email", "password": "required|min:8|confirmed"})

Supported rules: ``required``, ``min:n``, ``max:n``, ``email``, ``numeric`` and
``confirmed`` (matches ``<field>_confirmation``). Unknown rules are ignored.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Mapping, Sequence

from sura.exceptions import ValidationError
from sura.http.request import to_int

_EMAIL_RE = re.compile(r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+$")
_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


def is_valid_email(value: Any) -> bool:
    if not isinstance(value, str) or len(value) > 254:
        return False
    return bool(_EMAIL_RE.match(value)) and ".." not in value


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(_NUMERIC_RE.match(value))


class Validator:
    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = {}

    def validate(self, data: Mapping[str, Any], rules: Mapping[str, str | Sequence[str]]) -> bool:
        """Check ``data`` against ``rules``; True when every rule passes."""
        self._errors = {}

        for field, field_rules in rules.items():
            value = data.get(field)
            if isinstance(field_rules, str):
                field_rules = [r for r in field_rules.split("|") if r]

            for rule in field_rules:
                name, _, argument = rule.partition(":")
                check = self._checks().get(name)
                if check is None:
                    continue
                message = check(field, value, argument, data)
                if message is not None:
                    self._errors.setdefault(field, []).append(message)

        return not self._errors

    def validate_or_raise(
        self, data: Mapping[str, Any], rules: Mapping[str, str | Sequence[str]]
    ) -> dict[str, Any]:
        """Validated fields of ``data``.

        Raises:
            ValidationError: any rule failed; carries the errors map
        """
        if not self.validate(data, rules):
            raise ValidationError(self.errors())
        return {field: data.get(field) for field in rules}

    def errors(self) -> dict[str, list[str]]:
        return {field: list(messages) for field, messages in self._errors.items()}

    def fails(self) -> bool:
        return bool(self._errors)

    def _checks(self) -> dict[str, Callable[[str, Any, str, Mapping[str, Any]], str | None]]:
        return {
            "required": self._required,
            "min": self._min,
            "max": self._max,
            "email": self._email,
            "numeric": self._numeric,
            "confirmed": self._confirmed,
        }

    @staticmethod
    def _required(field: str, value: Any, argument: str, data: Mapping[str, Any]) -> str | None:
        if value is None or value == "":
            return f"The {field} field is required."
        return None

    @staticmethod
    def _min(field: str, value: Any, argument: str, data: Mapping[str, Any]) -> str | None:
        minimum = to_int(argument)
        if isinstance(value, str) and len(value) < minimum:
            return f"The {field} field must be at least {minimum} characters."
        return None

    @staticmethod
    def _max(field: str, value: Any, argument: str, data: Mapping[str, Any]) -> str | None:
        maximum = to_int(argument)
        if isinstance(value, str) and len(value) > maximum:
            return f"The {field} field must not exceed {maximum} characters."
        return None

    @staticmethod
    def _email(field: str, value: Any, argument: str, data: Mapping[str, Any]) -> str | None:
        if not is_valid_email(value):
            return f"The {field} field must be a valid email address."
        return None

    @staticmethod
    def _numeric(field: str, value: Any, argument: str, data: Mapping[str, Any]) -> str | None:
        if value is not None and value != "" and not is_numeric(value):
            return f"The {field} field must be a number."
        return None

    @staticmethod
    def _confirmed(field: str, value: Any, argument: str, data: Mapping[str, Any]) -> str | None:
        if data.get(f"{field}_confirmation") != value:
            return f"The {field} confirmation does not match."
        return None
