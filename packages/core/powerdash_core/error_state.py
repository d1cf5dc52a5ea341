"""Most recent acquisition failure."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    ACQUISITION = "acquisition"
    EMPTY = "empty"


class ErrorState:
    def __init__(self) -> None:
        self._message: str | None = None
        self._kind: FailureKind | None = None

    @property
    def kind(self) -> FailureKind | None:
        return self._kind

    def set(self, message: str, kind: FailureKind = FailureKind.ACQUISITION) -> None:
        self._message = message
        self._kind = kind

    def clear(self) -> None:
        self._message = None
        self._kind = None

    def get(self) -> str | None:
        return self._message
