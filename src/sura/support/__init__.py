"""Small helpers: registry, status codes and text sanitising.

``Cookie`` lives in ``sura.support.cookie`` because it depends on the HTTP layer.
"""

from sura.support.registry import Registry
from sura.support.status import Status
from sura.support.text import strip_data, text_filter

__all__ = ["Registry", "Status", "strip_data", "text_filter"]
