from sura.routing.route import Route
from sura.routing.router import Router, normalize_path

__all__ = ["Route", "Router", "normalize_path"]
