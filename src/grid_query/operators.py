"""Grid operator codes and the SQL comparison tokens they compile to."""

from __future__ import annotations

from enum import Enum


class GridOperator(str, Enum):
    """Operator codes sent by the grid widget."""

    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    # "contains" on the widget side; compiled as set membership.
    CO = "co"


EQ_TOKEN = "="
IN_TOKEN = "IN"
PLACEHOLDER = "?"

_TOKENS: dict[str, str] = {
    GridOperator.EQ.value: EQ_TOKEN,
    GridOperator.NE.value: "<>",
    GridOperator.LT.value: "<",
    GridOperator.LE.value: "<=",
    GridOperator.GT.value: ">",
    GridOperator.GE.value: ">=",
    GridOperator.CO.value: IN_TOKEN,
}


def sql_token(code: str) -> str:
    """Return the comparison token for ``code``; unknown codes mean ``=``."""
    return _TOKENS.get(code, EQ_TOKEN)


def format_rule(column: str, code: str) -> str:
    """Return the predicate fragment ``"<column> <token> ?"``."""
    return " ".join((column, sql_token(code), PLACEHOLDER))


__all__: list[str] = [
    "EQ_TOKEN",
    "GridOperator",
    "IN_TOKEN",
    "PLACEHOLDER",
    "format_rule",
    "sql_token",
]
