"""Error taxonomy for the fetch stage.

Every failure the fetcher can surface is a :class:`FetchError` carrying a
:class:`FetchErrorKind`.  Failures inside the headless browser are raised as
:class:`RenderError`, a subclass, so callers only ever need to catch
``FetchError``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FetchErrorKind(str, Enum):
    UNREACHABLE = "unreachable"
    BLOCKED = "blocked"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    NETWORK = "network"


class RenderErrorKind(str, Enum):
    TIMEOUT = "timeout"
    LAUNCH_FAILURE = "launch_failure"
    EVALUATION_FAILURE = "evaluation_failure"


_DEFAULT_MESSAGES = {
    FetchErrorKind.UNREACHABLE: "Website not accessible or does not exist",
    FetchErrorKind.BLOCKED: "Access denied - website may block automated requests",
    FetchErrorKind.NOT_FOUND: "Website not found (404)",
    FetchErrorKind.TIMEOUT: "Website took too long to load",
}


class FetchError(Exception):
    """The page could not be retrieved.

    Attributes:
        kind: Normalised failure category.
        detail: Underlying error text for ``network`` failures, else ``None``.
    """

    def __init__(
        self,
        kind: FetchErrorKind,
        message: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> None:
        if message is None:
            message = _DEFAULT_MESSAGES.get(kind) or f"Network error: {detail}"
        super().__init__(message)
        self.kind = kind
        self.detail = detail

    @property
    def message(self) -> str:
        return str(self)


class RenderError(FetchError):
    """The headless browser failed to produce page text."""

    def __init__(self, render_kind: RenderErrorKind, detail: Optional[str] = None) -> None:
        if render_kind is RenderErrorKind.TIMEOUT:
            super().__init__(FetchErrorKind.TIMEOUT, detail=detail)
        else:
            super().__init__(
                FetchErrorKind.NETWORK,
                message=f"Browser error: {detail}",
                detail=detail,
            )
        self.render_kind = render_kind
