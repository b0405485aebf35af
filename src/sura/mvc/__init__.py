from sura.mvc.controller import BaseController

__all__ = ["BaseController"]
