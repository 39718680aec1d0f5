"""Errors raised while lifting IR to expression trees."""

from __future__ import annotations

from typing import Any, Optional


class LiftingError(Exception):
    """Raised when a value cannot be translated.

    Translation failures are terminal: the conversion that raised produces
    no tree at all.
    """

    def __init__(
        self,
        message: str,
        value: Optional[Any] = None,
        function: Optional[str] = None,
    ):
        self.value = value
        self.function = function
        super().__init__(message)
