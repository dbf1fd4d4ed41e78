"""Grid query exceptions."""

from __future__ import annotations


class GridQueryError(Exception):
    """Root exception for the grid-query adapter."""


class ValidationError(GridQueryError):
    """Raised when request data cannot be turned into a query.

    Carries structured errors: ``{field: [messages]}``.
    """

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))


class QueryStringError(ValidationError):
    """Raised when URL-encoded request data is malformed."""


class FilterParseError(ValidationError):
    """Raised when the structured filter is invalid."""


class SchemaResolutionError(GridQueryError):
    """Raised when a schema descriptor cannot be derived from a model."""

    def __init__(self, model: object, reason: str | None = None) -> None:
        self.model = model
        self.reason = reason
        name = getattr(model, "__name__", type(model).__name__)
        msg = f"Cannot derive a grid schema from {name}"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)


__all__: list[str] = [
    "FilterParseError",
    "GridQueryError",
    "QueryStringError",
    "SchemaResolutionError",
    "ValidationError",
]
