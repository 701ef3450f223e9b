"""Derived conflict alert model (never persisted)."""

from typing import Literal

from pydantic import BaseModel


class ConflictAlert(BaseModel):
    """A detected double-booking between two classes."""

    id: str                                   # "<class1>-<class2>", "room-<c1>-<c2>"
    kind: Literal["teacher", "room"]
    severity: Literal["high", "medium", "low"]
    message: str
    class_ids: tuple[str, str]
