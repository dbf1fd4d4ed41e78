"""Tests for the operator table."""

from __future__ import annotations

import pytest

from grid_query.operators import GridOperator, format_rule, sql_token


@pytest.mark.parametrize(
    ("code", "token"),
    [
        ("eq", "="),
        ("ne", "<>"),
        ("lt", "<"),
        ("le", "<="),
        ("gt", ">"),
        ("ge", ">="),
        ("co", "IN"),
    ],
)
def test_token_table(code: str, token: str) -> None:
    assert sql_token(code) == token


@pytest.mark.parametrize("code", ["", "bw", "cn", "GT", "nu", "in"])
def test_unrecognized_codes_default_to_equality(code: str) -> None:
    assert sql_token(code) == "="


def test_enum_members_map_like_codes() -> None:
    assert sql_token(GridOperator.GE) == ">="


def test_format_rule() -> None:
    assert format_rule("age", "gt") == "age > ?"
    assert format_rule("name", "co") == "name IN ?"
    assert format_rule("name", "whatever") == "name = ?"
