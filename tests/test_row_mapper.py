from __future__ import annotations

import sqlite3
import unittest
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, ClassVar, NamedTuple, Optional

from sqlstore import MappingError, RowMapper
from sqlstore.core.mapping import ColumnBindingPlan, ShapeMember, column_label, describe_shape


def _desc(*names: str) -> tuple[tuple[Any, ...], ...]:
    return tuple((name, None, None, None, None, None, None) for name in names)


@dataclass
class MutableUser:
    id: int = 0
    name: str = ""
    email: Optional[str] = None
    score: float = 0.0
    active: bool = False
    nickname: str = "unset"


@dataclass
class Primitives:
    count: int = 5
    ratio: float = 5.0
    flag: bool = True
    maybe: Optional[int] = 5
    label: str = "x"
    anything: Any = "y"


@dataclass(frozen=True)
class UserRecord:
    id: int
    name: str
    score: float
    active: bool


@dataclass(frozen=True)
class CountingRecord:
    a: int
    b: str
    calls: ClassVar[list[tuple[int, str]]] = []

    def __post_init__(self) -> None:
        CountingRecord.calls.append((self.a, self.b))


@dataclass(frozen=True)
class RecordWithDefaults:
    id: int
    missing_int: int
    missing_text: Optional[str]
    tags: tuple[str, ...] = ("none",)


class UserTuple(NamedTuple):
    id: int
    name: str
    email: Optional[str] = None


class PlainUser:
    id: int
    name: str
    kind: ClassVar[str] = "plain"

    def __init__(self) -> None:
        self.id = -1
        self.name = ""


@dataclass
class RequiresArgs:
    id: int
    name: str


@dataclass(frozen=True, init=False)
class ShortConstructor:
    a: int
    b: int

    def __init__(self, a: int) -> None:
        object.__setattr__(self, "a", a)
        object.__setattr__(self, "b", 0)


class AnnotationsOnly:
    id: int
    name: str
    ratio: float
    note: Optional[str]
    tag: str = "kept"


class UnresolvedHints:
    id: int
    owner: UndefinedOwner  # noqa: F821


class NoFields:
    pass


@dataclass
class Temporal:
    day: Optional[date] = None
    moment: Optional[datetime] = None
    clock: Optional[time] = None
    amount: Optional[Decimal] = None
    blob: Optional[bytes] = None
    text: Optional[str] = None


class _CountingMapper(RowMapper):
    def __init__(self) -> None:
        super().__init__()
        self.plans = 0

    def plan(self, description, target):  # noqa: ANN001,ANN201
        self.plans += 1
        return super().plan(description, target)


class _NamedColumn(tuple):
    name: str


class RowMapperMutableTests(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = RowMapper()

    def test_maps_matching_columns_and_keeps_defaults(self) -> None:
        rows = [(1, "alice", "a@x", 9.5, 1, "extra")]
        users = self.mapper.map_rows(
            rows, _desc("id", "name", "email", "score", "active", "unknown"), MutableUser
        )
        self.assertEqual(
            users,
            [MutableUser(id=1, name="alice", email="a@x", score=9.5, active=True)],
        )
        self.assertEqual(users[0].nickname, "unset")

    def test_preserves_row_order(self) -> None:
        rows = [(3, "c"), (1, "a"), (2, "b")]
        users = self.mapper.map_rows(rows, _desc("id", "name"), MutableUser)
        self.assertEqual([u.id for u in users], [3, 1, 2])

    def test_null_into_primitives_yields_zero_values(self) -> None:
        rows = [(None, None, None, None, None, None)]
        result = self.mapper.map_rows(
            rows,
            _desc("count", "ratio", "flag", "maybe", "label", "anything"),
            Primitives,
        )[0]
        self.assertEqual(result.count, 0)
        self.assertIsInstance(result.count, int)
        self.assertEqual(result.ratio, 0.0)
        self.assertIsInstance(result.ratio, float)
        self.assertIs(result.flag, False)
        self.assertIsNone(result.maybe)
        self.assertIsNone(result.label)
        self.assertIsNone(result.anything)

    def test_column_matching_is_case_sensitive(self) -> None:
        users = self.mapper.map_rows([(7, "x")], _desc("ID", "name"), MutableUser)
        self.assertEqual(users[0].id, 0)
        self.assertEqual(users[0].name, "x")

    def test_plain_annotated_class(self) -> None:
        users = self.mapper.map_rows([(4, "d", "ignored")], _desc("id", "name", "kind"), PlainUser)
        self.assertEqual((users[0].id, users[0].name), (4, "d"))
        self.assertEqual(PlainUser.kind, "plain")

    def test_unmatched_members_of_plain_class_get_zero_values(self) -> None:
        rows = self.mapper.map_rows([(3,)], _desc("id"), AnnotationsOnly)
        row = rows[0]
        self.assertEqual(row.id, 3)
        self.assertIsNone(row.name)
        self.assertEqual(row.ratio, 0.0)
        self.assertIsNone(row.note)
        self.assertEqual(row.tag, "kept")

    def test_unresolvable_annotations_are_logged(self) -> None:
        with self.assertLogs("sqlstore.core.mapping", level="DEBUG") as logs:
            shape = describe_shape(UnresolvedHints)
        self.assertIn("UnresolvedHints", logs.output[0])
        self.assertEqual([m.name for m in shape.members], ["id", "owner"])

    def test_missing_default_constructor_fails_with_type_name(self) -> None:
        with self.assertRaises(MappingError) as ctx:
            self.mapper.map_rows([(1, "a")], _desc("id", "name"), RequiresArgs)
        self.assertIs(ctx.exception.target, RequiresArgs)
        self.assertIn("RequiresArgs", str(ctx.exception))

    def test_no_rows_means_no_instances(self) -> None:
        self.assertEqual(self.mapper.map_rows([], _desc("id"), RequiresArgs), [])

    def test_plan_is_built_once_per_execution(self) -> None:
        mapper = _CountingMapper()
        rows = [(i, f"user{i}") for i in range(25)]
        users = mapper.map_rows(rows, _desc("id", "name"), MutableUser)
        self.assertEqual(len(users), 25)
        self.assertEqual(mapper.plans, 1)

    def test_conversion_failure_names_column(self) -> None:
        with self.assertRaises(MappingError) as ctx:
            self.mapper.map_rows([("not-a-number",)], _desc("id"), MutableUser)
        self.assertIn("'id'", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, ValueError)


class RowMapperImmutableTests(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = RowMapper()
        CountingRecord.calls.clear()

    def test_frozen_dataclass_built_through_constructor(self) -> None:
        rows = [(0, 1, "a", 1.5), (1, 2, "b", 2)]
        records = self.mapper.map_rows(rows, _desc("active", "id", "name", "score"), UserRecord)
        self.assertEqual(
            records,
            [
                UserRecord(id=1, name="a", score=1.5, active=False),
                UserRecord(id=2, name="b", score=2.0, active=True),
            ],
        )
        self.assertIsInstance(records[1].score, float)

    def test_constructor_called_once_per_row_in_declared_order(self) -> None:
        rows = [("first", 1), ("second", 2)]
        records = self.mapper.map_rows(rows, _desc("b", "a"), CountingRecord)
        self.assertEqual(CountingRecord.calls, [(1, "first"), (2, "second")])
        self.assertEqual(records, [CountingRecord(1, "first"), CountingRecord(2, "second")])

    def test_unmatched_components_use_defaults_or_zero(self) -> None:
        records = self.mapper.map_rows([(9,)], _desc("id"), RecordWithDefaults)
        self.assertEqual(
            records, [RecordWithDefaults(id=9, missing_int=0, missing_text=None, tags=("none",))]
        )

    def test_named_tuple(self) -> None:
        rows = [(1, "a"), (2, None)]
        users = self.mapper.map_rows(rows, _desc("id", "name"), UserTuple)
        self.assertEqual(users, [UserTuple(1, "a", None), UserTuple(2, None, None)])

    def test_constructor_arity_mismatch_fails(self) -> None:
        with self.assertRaises(MappingError) as ctx:
            self.mapper.map_rows([(1, 2)], _desc("a", "b"), ShortConstructor)
        self.assertIn("ShortConstructor", str(ctx.exception))


class RowMapperShapeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = RowMapper()

    def test_dict_target_keeps_column_order(self) -> None:
        rows = self.mapper.map_rows([(1, "a", None)], _desc("z", "a", "m"), dict)
        self.assertEqual(list(rows[0].items()), [("z", 1), ("a", "a"), ("m", None)])

    def test_mapping_rows_are_read_by_column_name(self) -> None:
        rows = [{"name": "n", "id": 3}]
        users = self.mapper.map_rows(rows, _desc("id", "name"), MutableUser)
        self.assertEqual((users[0].id, users[0].name), (3, "n"))

    def test_sqlite_row_factory_rows(self) -> None:
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        try:
            cur = conn.execute("SELECT 5 AS id, 'e' AS name")
            users = self.mapper.map_cursor(cur, MutableUser)
        finally:
            conn.close()
        self.assertEqual((users[0].id, users[0].name), (5, "e"))

    def test_cursor_without_result_set(self) -> None:
        class _NoResult:
            description = None

            def fetchall(self):  # noqa: ANN201
                raise AssertionError("fetchall must not be called")

        self.assertEqual(self.mapper.map_cursor(_NoResult(), MutableUser), [])

    def test_shape_member_defaults(self) -> None:
        bare = ShapeMember(name="count", annotation=int, nullable=False)
        self.assertFalse(bare.has_default())
        self.assertEqual(bare.default_value(), 0)

        listed = ShapeMember(name="tags", annotation=list, nullable=False, default_factory=list)
        self.assertTrue(listed.has_default())
        self.assertEqual(listed.default_value(), [])

        shape = describe_shape(RecordWithDefaults)
        self.assertEqual([m.has_default() for m in shape.members], [False, False, False, True])

    def test_shape_without_fields_fails(self) -> None:
        with self.assertRaises(MappingError):
            describe_shape(NoFields)

    def test_non_class_target_fails(self) -> None:
        with self.assertRaises(MappingError):
            describe_shape(Optional[int])  # type: ignore[arg-type]

    def test_plan_records_unmapped_columns(self) -> None:
        plan = self.mapper.plan(_desc("id", "other", "name"), MutableUser)
        self.assertIsInstance(plan, ColumnBindingPlan)
        self.assertEqual([b.column for b in plan.mapped], ["id", "name"])
        self.assertIsNone(plan.columns[1].member)

    def test_repeated_label_last_column_wins(self) -> None:
        records = self.mapper.map_rows([(1, "a", "b")], _desc("a", "b", "b"), CountingRecord)
        self.assertEqual(records[0].b, "b")

    def test_column_label_falls_back_to_name(self) -> None:
        entry = _NamedColumn(("", None))
        entry.name = "underlying"
        self.assertEqual(column_label(entry), "underlying")
        self.assertEqual(column_label(("label", None)), "label")


class RowMapperCoercionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = RowMapper()
        self.columns = _desc("day", "moment", "clock", "amount", "blob", "text")

    def _map_one(self, *values: Any) -> Temporal:
        return self.mapper.map_rows([values], self.columns, Temporal)[0]

    def test_iso_strings_from_sqlite(self) -> None:
        result = self._map_one(
            "2024-01-02", "2024-01-02 03:04:05", "10:11:12", "1.10", "raw", b"caf\xc3\xa9"
        )
        self.assertEqual(result.day, date(2024, 1, 2))
        self.assertEqual(result.moment, datetime(2024, 1, 2, 3, 4, 5))
        self.assertEqual(result.clock, time(10, 11, 12))
        self.assertEqual(result.amount, Decimal("1.10"))
        self.assertEqual(result.blob, b"raw")
        self.assertEqual(result.text, "café")

    def test_native_values_are_narrowed(self) -> None:
        moment = datetime(2024, 5, 6, 7, 8, 9)
        result = self._map_one(moment, date(2024, 5, 6), timedelta(hours=7, minutes=8), 2.5, memoryview(b"xy"), 12)
        self.assertEqual(result.day, date(2024, 5, 6))
        self.assertEqual(result.moment, datetime(2024, 5, 6, 0, 0))
        self.assertEqual(result.clock, time(7, 8))
        self.assertEqual(result.amount, Decimal("2.5"))
        self.assertEqual(result.blob, b"xy")
        self.assertEqual(result.text, "12")

    def test_datetime_string_into_date_member(self) -> None:
        result = self._map_one("2024-03-04 05:06:07", None, None, None, None, None)
        self.assertEqual(result.day, date(2024, 3, 4))
        self.assertIsNone(result.moment)

    def test_boolean_text_values(self) -> None:
        @dataclass
        class Flags:
            a: bool = False
            b: bool = True

        result = self.mapper.map_rows([("true", "0")], _desc("a", "b"), Flags)[0]
        self.assertIs(result.a, True)
        self.assertIs(result.b, False)


if __name__ == "__main__":
    unittest.main()
