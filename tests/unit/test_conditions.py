"""Unit tests for filterspec.conditions module."""

import logging
from typing import Any

import pytest
from sqlglot import exp

from filterspec import CompilerConfig, SchemaDescriptor
from filterspec.conditions import Clause, Condition, build_condition, parse_clauses, parse_filter_json
from filterspec.dialects import Dialect, get_builder
from filterspec.fields import Operator
from filterspec.values import Array, Bool, Float, Integer, Null, Text

SAMPLE_UUID = "5f0c6a3e-8d4b-4e8a-9a57-1c2b3d4e5f60"
OTHER_UUID = "0a1b2c3d-4e5f-4a6b-8c7d-9e0f1a2b3c4d"


def render(filters: dict[str, Any], schema: SchemaDescriptor, dialect: Dialect = Dialect.POSTGRES) -> str:
    builder = get_builder(dialect)
    expression = build_condition(parse_clauses(filters, schema), schema, builder)
    return "" if expression is None else builder.render(expression)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, {}),
        ("", {}),
        ("   ", {}),
        ('{"title": "x"}', {"title": "x"}),
        (b'{"score_gte": 5}', {"score_gte": 5}),
        ({"title": "x"}, {"title": "x"}),
        ("{not json", {}),
        ("[1, 2]", {}),
        ('"text"', {}),
    ],
    ids=["none", "empty", "blank", "object", "bytes", "mapping", "malformed", "array", "string"],
)
def test_parse_filter_json(raw: Any, expected: dict[str, Any]) -> None:
    assert parse_filter_json(raw) == expected


def test_parse_filter_json_logs_malformed_input(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="filterspec")

    parse_filter_json("{oops")

    assert any("Invalid JSON" in record.getMessage() for record in caplog.records)


def test_parse_clauses(todo_schema: SchemaDescriptor) -> None:
    clauses = parse_clauses(
        {"title": "milk", "score_gte": 50, "completed": True, "due_date": None, "q": "ignored"}, todo_schema
    )

    assert clauses == [
        Clause("title", "title", Operator.EQ, Text("milk")),
        Clause("score_gte", "score", Operator.GTE, Integer(50), has_suffix=True),
        Clause("completed", "completed", Operator.EQ, Bool(True)),
        Clause("due_date", "due_date", Operator.EQ, Null()),
    ]


@pytest.mark.parametrize(
    "filters",
    [
        {"nonexistent_field": "x"},
        {"_hidden": "x"},
        {"title; DROP TABLE todos": "x"},
        {"1title": "x"},
        {"title": {"nested": "object"}},
        {"title": "x" * 10_001},
        {"due_date_gte": None},
        {"status_neq": ["open", "closed"]},
        {"ids": SAMPLE_UUID},
        {"score_gte_lte": 5},
    ],
    ids=[
        "unknown_field",
        "leading_underscore",
        "injection",
        "leading_digit",
        "object_value",
        "too_long",
        "operator_on_null",
        "operator_on_array",
        "ids_not_array",
        "unknown_base_after_suffix",
    ],
)
def test_dropped_clauses(filters: dict[str, Any], todo_schema: SchemaDescriptor) -> None:
    assert parse_clauses(filters, todo_schema) == []


def test_value_length_cap_is_configurable(todo_schema: SchemaDescriptor) -> None:
    config = CompilerConfig(max_value_length=5)

    assert parse_clauses({"title": "123456"}, todo_schema, config) == []
    assert len(parse_clauses({"title": "12345"}, todo_schema, config)) == 1


def test_invalid_name_is_logged_as_warning(todo_schema: SchemaDescriptor, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="filterspec")

    parse_clauses({"bad-name": "x", "unknown": "y"}, todo_schema)

    levels = {record.getMessage().split(":")[0]: record.levelno for record in caplog.records}
    assert levels["Invalid field name rejected"] == logging.WARNING
    assert levels["Ignoring filter on unknown field"] == logging.DEBUG


def test_rejected_values_are_not_logged(todo_schema: SchemaDescriptor, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="filterspec")
    secret = "s3cr3t" * 2000

    parse_clauses({"title": secret}, todo_schema)

    assert all(secret not in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize(
    ("filters", "expected"),
    [
        ({"title": "Milk"}, "UPPER(\"title\") LIKE UPPER('%Milk%') ESCAPE '!'"),
        ({"title": "100%"}, "UPPER(\"title\") LIKE UPPER('%100!%%') ESCAPE '!'"),
        ({"title_eq": " Exact Title "}, "\"title\" = 'Exact Title'"),
        ({"description": "Buy"}, "UPPER(\"description\") = UPPER('Buy')"),
        ({"description": "   "}, "\"description\" = ''"),
        ({"status": "open"}, "UPPER(CAST(\"status\" AS TEXT)) = UPPER('open')"),
        ({"owner_id": SAMPLE_UUID}, f"\"owner_id\" = '{SAMPLE_UUID}'"),
        ({"title": SAMPLE_UUID}, f"\"title\" = '{SAMPLE_UUID}'"),
        ({"score": 50}, '"score" = 50'),
        ({"score_gte": 50.0}, '"score" >= 50.0'),
        ({"score_gt": 50}, '"score" > 50'),
        ({"score_lte": 10}, '"score" <= 10'),
        ({"score_lt": 10}, '"score" < 10'),
        ({"score_neq": 10}, '"score" <> 10'),
        ({"due_date_gte": "2024-01-01"}, "\"due_date\" >= '2024-01-01'"),
        ({"completed": True}, '"completed" = TRUE'),
        ({"completed_neq": True}, '"completed" <> TRUE'),
        ({"completed_gt": False}, '"completed" = FALSE'),
        ({"due_date": None}, '"due_date" IS NULL'),
        ({"score": [1, 2, 3]}, '"score" IN (1, 2, 3)'),
        ({"status": ["open", "closed"]}, "\"status\" IN ('open', 'closed')"),
    ],
    ids=[
        "like_column",
        "like_escapes_wildcards",
        "exact_suffix",
        "case_insensitive_equality",
        "blank_text",
        "enum",
        "uuid",
        "uuid_wins_over_like",
        "integer_equality",
        "gte",
        "gt",
        "lte",
        "lt",
        "neq",
        "text_comparison",
        "bool",
        "bool_neq",
        "bool_other_operator_degrades",
        "null",
        "number_array",
        "text_array",
    ],
)
def test_clause_lowering_postgres(filters: dict[str, Any], expected: str, todo_schema: SchemaDescriptor) -> None:
    assert render(filters, todo_schema) == expected


def test_ids_array_targets_identity_column(todo_schema: SchemaDescriptor) -> None:
    sql = render({"ids": [SAMPLE_UUID, "garbage", 7, OTHER_UUID]}, todo_schema)

    assert sql == f"\"id\" IN ('{SAMPLE_UUID}', '{OTHER_UUID}')"


def test_ids_with_custom_identity_column() -> None:
    schema = SchemaDescriptor(
        "users", filterable=["email"], sortable=["user_id"], default_sort_column="user_id", id_column="user_id"
    )

    assert render({"ids": [SAMPLE_UUID]}, schema) == f"\"user_id\" = '{SAMPLE_UUID}'"


def test_ids_without_valid_elements_is_dropped(todo_schema: SchemaDescriptor) -> None:
    assert render({"ids": ["garbage", None]}, todo_schema) == ""


def test_array_skips_non_scalars(todo_schema: SchemaDescriptor) -> None:
    assert render({"score": [1, None, {"a": 1}, [2]]}, todo_schema) == '"score" = 1'


def test_clauses_are_anded(todo_schema: SchemaDescriptor) -> None:
    sql = render({"score_gte": 10, "score_lt": 90, "completed": False}, todo_schema)

    assert sql == '"score" >= 10 AND "score" < 90 AND "completed" = FALSE'


def test_enum_case_sensitive_schema() -> None:
    schema = SchemaDescriptor("jobs", filterable=["state"], enum_fields=["state"], enum_case_sensitive=True)

    assert render({"state": "Queued"}, schema) == "CAST(\"state\" AS TEXT) = 'Queued'"
    assert render({"state": "Queued"}, schema, Dialect.SQLITE) == "\"state\" = 'Queued'"
    assert "BINARY" in render({"state": "Queued"}, schema, Dialect.MYSQL)


def test_like_enum_column_is_cast_on_postgres() -> None:
    schema = SchemaDescriptor("jobs", like_filterable=["state"], enum_fields=["state"])

    assert render({"state": "que"}, schema) == "UPPER(CAST(\"state\" AS TEXT)) LIKE UPPER('%que%') ESCAPE '!'"
    assert render({"state": "que"}, schema, Dialect.SQLITE) == "UPPER(\"state\") LIKE UPPER('%que%') ESCAPE '!'"


def test_mysql_quotes_identifiers_with_backticks(todo_schema: SchemaDescriptor) -> None:
    assert render({"description": "Buy"}, todo_schema, Dialect.MYSQL) == "UPPER(`description`) = UPPER('Buy')"


def test_condition_empty() -> None:
    condition = Condition()

    assert condition.is_empty
    assert condition.sql() == ""
    select = exp.select("*").from_("todos")
    assert condition.apply(select) is select


def test_condition_sql_and_apply(todo_schema: SchemaDescriptor) -> None:
    builder = get_builder(Dialect.SQLITE)
    expression = build_condition(parse_clauses({"score_gt": 5}, todo_schema), todo_schema, builder)
    condition = Condition(expression, Dialect.SQLITE)
    select = exp.select("*").from_("todos")

    applied = condition.apply(select)

    assert applied is not select
    assert applied.sql(dialect="sqlite") == 'SELECT * FROM todos WHERE "score" > 5'
    assert select.sql(dialect="sqlite") == "SELECT * FROM todos"
    assert condition.sql("mysql") == "`score` > 5"


def test_condition_and_and_equality(todo_schema: SchemaDescriptor) -> None:
    builder = get_builder(Dialect.POSTGRES)
    left = Condition(builder.compare(builder.column("score"), Operator.GT, builder.literal(1)))
    right = Condition(builder.compare(builder.column("score"), Operator.LT, builder.literal(9)))

    assert left.and_(right).sql() == '"score" > 1 AND "score" < 9'
    assert left.and_(Condition()) == left
    assert Condition().and_(Condition()).is_empty
    assert hash(left) == hash(Condition(left.expression))


def test_float_value_keeps_type(todo_schema: SchemaDescriptor) -> None:
    clauses = parse_clauses({"score_gte": 50.0}, todo_schema)

    assert clauses[0].value == Float(50.0)


def test_ids_clause_shape(todo_schema: SchemaDescriptor) -> None:
    (clause,) = parse_clauses({"ids": [SAMPLE_UUID]}, todo_schema)

    assert clause.is_ids
    assert clause.field == "id"
    assert isinstance(clause.value, Array)
