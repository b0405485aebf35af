from __future__ import annotations

from enum import IntEnum


class Status(IntEnum):
    """Result codes returned by application actions (mostly to AJAX callers)."""

    BAD = 0
    OK = 1
    LOGGED = 2  # Already signed in
    BAD_LOGGED = 3
    BAD_MAIL = 4
    BAD_PASSWORD = 5
    PASSWORD_DOESNT_MATCH = 6
    BAD_USER = 7
    NOT_USER = 8
    NOT_VALID = 9
    BAD_CODE = 10
    BAD_MOVE = 11
    FILE_NOT_EXIST = 12
    FILE_EXIST = 13
    BIG_SIZE = 14
    BAD_FORMAT = 15
    NOT_FOUND = 16
    FOUND = 17
    OWNER_FOUND = 18
    OWNER = 19
    NOT_DATA = 20
    LIMIT = 21
    MAX = 22
    BAD_RIGHTS = 23
    PERMISSION = 24
    PRIVACY = 25
    BAD_FRIEND = 26
    FRIEND = 27
    BAD_DEMAND = 28
    DEMAND = 29
    BAD_DEMAND_OWNER = 30
    DEMAND_OWNER = 31
    NOT_MONEY = 32
    BLACKLIST = 33
    ANTISPAM = 34
    SUBSCRIPTION = 35
