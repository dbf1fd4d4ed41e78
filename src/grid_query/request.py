"""SearchRequest: grid search parameters bound from URL-encoded data."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qsl

from .exceptions import QueryStringError
from .settings import DEFAULT_SETTINGS, GridQuerySettings

logger = logging.getLogger(__name__)

QueryValues = Mapping[str, str | Sequence[str]]

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_INTEGER = re.compile(r"[+-]?[0-9]+")

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"
    UNSPECIFIED = ""


def decode_query(raw: str | bytes) -> dict[str, list[str]]:
    """Decode URL-encoded ``raw`` into ``{key: [values]}``.

    Keys without ``=`` decode to an empty value. Raises
    :class:`QueryStringError` for invalid percent escapes, ``;``
    separators, or data that is not UTF-8.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise QueryStringError(f"query is not valid UTF-8: {e}") from e
    if ";" in raw:
        raise QueryStringError("invalid semicolon separator in query")
    match = _BAD_ESCAPE.search(raw)
    if match is not None:
        escape = raw[match.start() : match.start() + 3]
        raise QueryStringError(f"invalid URL escape {escape!r}")
    try:
        pairs = parse_qsl(raw, keep_blank_values=True, errors="strict")
    except UnicodeDecodeError as e:
        raise QueryStringError(f"query is not valid UTF-8: {e}") from e
    values: dict[str, list[str]] = {}
    for key, value in pairs:
        values.setdefault(key, []).append(value)
    return values


def first_value(values: QueryValues, key: str) -> str:
    """Return the first value stored under ``key``, or ``""``."""
    value = values.get(key)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return value[0] if value else ""


def parse_int(raw: str) -> int | None:
    """Parse a signed base-10 integer that fits in 64 bits.

    Only ASCII digits with an optional sign are accepted. Returns ``None``
    for anything else, including values outside the 64-bit range.
    """
    if not _INTEGER.fullmatch(raw):
        return None
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


@dataclass
class SearchRequest:
    """Search parameters of a single grid request.

    Created empty, then populated by :meth:`bind`. All fields stay empty
    unless the request has search mode switched on.
    """

    sort: str = ""
    order: str = ""
    filters: str = ""
    search_oper: str = ""
    search_field: str = ""
    search_string: str = ""

    @property
    def sort_direction(self) -> SortDirection:
        if not self.order:
            return SortDirection.UNSPECIFIED
        return SortDirection.DESC if self.order == "DESC" else SortDirection.ASC

    @property
    def has_quick_search(self) -> bool:
        return bool(self.search_field and self.search_string)

    def bind(
        self,
        values: QueryValues,
        settings: GridQuerySettings = DEFAULT_SETTINGS,
    ) -> None:
        """Copy recognized grid parameters from ``values``.

        No-op unless ``values[settings.search_key]`` equals
        ``settings.search_value``. Values are taken verbatim, except the
        order which is upper-cased.
        """
        if first_value(values, settings.search_key) != settings.search_value:
            return
        self.sort = first_value(values, settings.sort_key)
        self.order = first_value(values, settings.order_key).upper()
        self.filters = first_value(values, settings.filters_key)
        self.search_oper = first_value(values, settings.search_oper_key)
        self.search_field = first_value(values, settings.search_field_key)
        self.search_string = first_value(values, settings.search_string_key)
        logger.debug(
            "Bound grid search: sort=%r order=%r filters=%r quick=%r %r %r",
            self.sort,
            self.order,
            self.filters,
            self.search_field,
            self.search_oper,
            self.search_string,
        )

    def parse(
        self,
        raw: str | bytes,
        settings: GridQuerySettings = DEFAULT_SETTINGS,
    ) -> dict[str, list[str]]:
        """Decode ``raw`` and bind it. Returns the decoded values."""
        values = decode_query(raw)
        self.bind(values, settings)
        return values

    @classmethod
    def from_values(
        cls,
        values: QueryValues,
        settings: GridQuerySettings = DEFAULT_SETTINGS,
    ) -> SearchRequest:
        request = cls()
        request.bind(values, settings)
        return request
