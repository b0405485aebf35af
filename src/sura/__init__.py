"""Sura: a small async MVC web framework.

Exports the pieces an application touches directly; everything else is
importable from its subpackage.
"""

from sura.application import Application
from sura.config import Environment, Settings
from sura.container import Container
from sura.exceptions import (
    ContainerError,
    HttpError,
    NotFoundError,
    QueryError,
    SuraError,
    ValidationError,
    abort,
)
from sura.http.kernel import Kernel
from sura.http.request import Request, current_request
from sura.http.response import Response
from sura.quart_app import SuraApp, create_app
from sura.routing.router import Router

__all__ = [
    "Application",
    "Container",
    "ContainerError",
    "Environment",
    "HttpError",
    "Kernel",
    "NotFoundError",
    "QueryError",
    "Request",
    "Response",
    "Router",
    "Settings",
    "SuraApp",
    "SuraError",
    "ValidationError",
    "abort",
    "create_app",
    "current_request",
]
