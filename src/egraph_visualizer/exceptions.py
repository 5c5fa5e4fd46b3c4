"""Exceptions for the egraph visualization pipeline."""

from __future__ import annotations


class MalformedInputError(Exception):
    """Serialized egraph is not well-formed.

    Raised by the parser before any downstream stage runs, so no partial
    EGraph is ever produced.

    Attributes:
        path: Location of the offending value (e.g. ``nodes.n1.children[0]``)
        message: Human-readable error message
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        self.path = path
        self.message = f"{message} (at {path})" if path else message
        super().__init__(self.message)


class LayoutEngineError(Exception):
    """The external layout engine failed.

    Carries the engine's original exception as ``__cause__``; the pipeline
    never retries and never substitutes fallback geometry.

    Attributes:
        message: Human-readable error message
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.message = message
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class LayoutCancelledError(Exception):
    """A layout request was cancelled before the engine completed.

    Attributes:
        reason: The reason given when the request was cancelled
        message: Human-readable error message
    """

    def __init__(self, reason: object = None, message: str | None = None) -> None:
        self.reason = reason
        self.message = message or self._default_message()
        super().__init__(self.message)

    def _default_message(self) -> str:
        if self.reason is None:
            return "Layout request was cancelled."
        return f"Layout request was cancelled: {self.reason}"
