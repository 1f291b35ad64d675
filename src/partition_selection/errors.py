"""Error type and build result shared by noise mechanisms and strategies."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class StatusCode(Enum):
    """Status codes carried by build failures."""

    OK = "ok"
    INVALID_ARGUMENT = "invalid_argument"


class InvalidArgumentError(ValueError):
    """Raised when a builder is given parameters that fail validation.

    The message prefix is stable and safe to match on, e.g.
    ``"Epsilon has to be set"``.
    """

    code = StatusCode.INVALID_ARGUMENT

    @property
    def message(self) -> str:
        return str(self)


@dataclass(frozen=True)
class BuildResult(Generic[T]):
    """Outcome of a builder's ``build()``: a ready value or the first validation error.

    Attributes
    ----------
        value: T | None
            The built object, present only when the build succeeded.
        error: InvalidArgumentError | None
            The first violated check, present only when the build failed.
    """

    value: T | None = None
    error: InvalidArgumentError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def code(self) -> StatusCode:
        return StatusCode.OK if self.error is None else self.error.code

    @property
    def message(self) -> str:
        return "" if self.error is None else self.error.message

    def value_or_raise(self) -> T:
        """Return the built value, raising the stored error if the build failed."""
        if self.error is not None:
            raise self.error
        return self.value
