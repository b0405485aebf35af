"""User-Agent header sniffing: device class, browser family and crawlers."""

from __future__ import annotations

import re

_MOBILE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"Android.*Mobile",
        r"iPhone",
        r"BlackBerry",
        r"Opera Mini",
        r"IEMobile",
        r"Mobile Safari",
        r"Mobile",
        r"Mobi",
    )
]

_TABLET_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (r"iPad", r"Android(?!.*Mobile)", r"Tablet", r"Kindle", r"PlayBook", r"Silk")
]

_BOT_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"Googlebot",
        r"Bingbot",
        r"Slurp",  # Yahoo
        r"DuckDuckBot",
        r"Baiduspider",
        r"YandexBot",
        r"ia_archiver",  # Alexa
        r"facebookexternalhit",
        r"Twitterbot",
    )
]

_CHROME_RE = re.compile(r"Chrome/\d+")
_FIREFOX_RE = re.compile(r"Firefox/\d+")
_SAFARI_RE = re.compile(r"Safari/\d+")
_EDGE_RE = re.compile(r"Edg(e|a|ios)?/\d+")
_IE_RE = re.compile(r"Trident/|MSIE \d")


class UserAgent:
    def __init__(self, user_agent: str = "") -> None:
        self.user_agent = user_agent or ""
        self._mobile: bool | None = None
        self._tablet: bool | None = None

    def is_mobile(self) -> bool:
        if self._mobile is None:
            self._mobile = any(p.search(self.user_agent) for p in _MOBILE_PATTERNS)
        return self._mobile

    def is_tablet(self) -> bool:
        if self._tablet is None:
            self._tablet = any(p.search(self.user_agent) for p in _TABLET_PATTERNS)
        return self._tablet

    def is_desktop(self) -> bool:
        return not self.is_mobile() and not self.is_tablet()

    def get_device_type(self) -> str:
        if self.is_mobile():
            return "mobile"
        if self.is_tablet():
            return "tablet"
        return "desktop"

    def get_browser(self) -> str:
        """Browser family; Edge is tested first because its UA also claims Chrome."""
        if self.is_edge():
            return "edge"
        if self.is_chrome():
            return "chrome"
        if self.is_firefox():
            return "firefox"
        if self.is_safari():
            return "safari"
        if self.is_ie():
            return "ie"
        return "unknown"

    def is_bot(self) -> bool:
        return any(p.search(self.user_agent) for p in _BOT_PATTERNS)

    def get_user_agent(self) -> str:
        return self.user_agent

    def is_chrome(self) -> bool:
        return bool(_CHROME_RE.search(self.user_agent)) and not self.is_edge()

    def is_firefox(self) -> bool:
        return bool(_FIREFOX_RE.search(self.user_agent))

    def is_safari(self) -> bool:
        return bool(_SAFARI_RE.search(self.user_agent)) and not _CHROME_RE.search(
            self.user_agent
        )

    def is_edge(self) -> bool:
        return bool(_EDGE_RE.search(self.user_agent))

    def is_ie(self) -> bool:
        return bool(_IE_RE.search(self.user_agent))
