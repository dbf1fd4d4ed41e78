"""GridQuerySettings: request parameter names and paging defaults."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class GridQuerySettings:
    """Configuration for parsing grid requests.

    Attributes:
        search_key: Key that activates search parsing.
        search_value: Value ``search_key`` must carry (default: "true").
        sort_key: Logical field to order by.
        order_key: Sort direction, ``ASC`` / ``DESC`` (case-insensitive).
        filters_key: Structured filter JSON.
        search_oper_key: Quick-search operator code.
        search_field_key: Quick-search field name.
        search_string_key: Quick-search value.
        page_key: 1-based page number.
        size_key: Page size.
        default_page_size: Size used when the request carries none.
        max_page_size: Upper bound applied to requested sizes.
        default_group_op: Group operator used when ``groupOp`` is empty.
    """

    search_key: str = "_search"
    search_value: str = "true"
    sort_key: str = "sort"
    order_key: str = "order"
    filters_key: str = "filters"
    search_oper_key: str = "searchOper"
    search_field_key: str = "searchField"
    search_string_key: str = "searchString"
    page_key: str = "page"
    size_key: str = "size"

    default_page_size: int = 20
    max_page_size: int = 1000
    default_group_op: str = "AND"

    def __post_init__(self) -> None:
        if self.default_page_size < 1:
            raise ValueError("default_page_size must be >= 1")
        if self.max_page_size < self.default_page_size:
            raise ValueError("max_page_size must be >= default_page_size")
        if self.default_group_op.upper() not in ("AND", "OR"):
            raise ValueError("default_group_op must be AND or OR")

    @classmethod
    def jqgrid(cls, **overrides: object) -> GridQuerySettings:
        """Preset using the widget's native ``sidx``/``sord``/``rows`` names."""
        base = cls(sort_key="sidx", order_key="sord", size_key="rows")
        return replace(base, **overrides) if overrides else base  # type: ignore[arg-type]


DEFAULT_SETTINGS = GridQuerySettings()
