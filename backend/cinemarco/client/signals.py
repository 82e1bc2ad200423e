"""Signal variants shared by several screens.

Update functions return exactly one signal per call. Only the owner of the
screen interprets it; ``NO_OP`` means there is nothing for the owner to do.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NoOp:
    pass


@dataclass(frozen=True)
class CloseRequested:
    pass


@dataclass(frozen=True)
class Cancelled:
    pass


@dataclass(frozen=True)
class NavigateBack:
    pass


@dataclass(frozen=True)
class Dismissed:
    pass


@dataclass(frozen=True)
class ShowNotification:
    message: str
    is_success: bool


NO_OP = NoOp()
CLOSE_REQUESTED = CloseRequested()
CANCELLED = Cancelled()
