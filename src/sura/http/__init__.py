from sura.http.request import Request, current_request
from sura.http.response import Response
from sura.http.user_agent import UserAgent

__all__ = ["Request", "Response", "UserAgent", "current_request"]
