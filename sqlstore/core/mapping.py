"""Result row mapping into caller-supplied shapes.

Column-to-member resolution happens once per execution and is reused for
every row. Supported shapes are dataclasses (frozen ones are built through
their constructor), `typing.NamedTuple` classes, plain annotated classes with
a no-argument constructor, and `dict`.
"""

from __future__ import annotations

import logging
import types
from collections.abc import Mapping
from dataclasses import MISSING, dataclass, fields, is_dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
    cast,
    get_args,
    get_origin,
    get_type_hints,
)

from .errors import MappingError
from .types import ColumnDescription, RowMapping

T = TypeVar("T")

ZERO_VALUES: Dict[Any, Any] = {int: 0, float: 0.0, bool: False}

_TRUE_STRINGS = frozenset({"1", "t", "true", "y", "yes", "on"})

# Marks a member without a default. `dataclasses.MISSING` counts as unset too.
_NO_DEFAULT = object()

logger = logging.getLogger(__name__)


def _is_unset(value: Any) -> bool:
    return value is _NO_DEFAULT or value is MISSING


def _to_int(value: Any) -> int:
    return int(value)


def _to_float(value: Any) -> float:
    return float(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8")
    return str(value)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    return datetime.fromisoformat(str(value))


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    if len(text) > 10:
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


def _to_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, timedelta):
        # MySQL drivers return TIME columns as timedelta.
        return (datetime.min + value).time()
    return time.fromisoformat(str(value))


COERCERS: Dict[Any, Callable[[Any], Any]] = {
    int: _to_int,
    float: _to_float,
    bool: _to_bool,
    str: _to_str,
    Decimal: _to_decimal,
    bytes: _to_bytes,
    datetime: _to_datetime,
    date: _to_date,
    time: _to_time,
}


@dataclass(frozen=True)
class ShapeMember:
    """One field or constructor component of a target shape."""

    name: str
    annotation: Any
    nullable: bool
    keyword_only: bool = False
    default: Any = _NO_DEFAULT
    default_factory: Any = _NO_DEFAULT

    def has_default(self) -> bool:
        return not (_is_unset(self.default) and _is_unset(self.default_factory))

    def default_value(self) -> Any:
        if not _is_unset(self.default_factory):
            return self.default_factory()
        if not _is_unset(self.default):
            return self.default
        return self.null_value()

    def null_value(self) -> Any:
        """Value used for SQL NULL: zero for non-nullable primitives, else None."""

        if self.nullable:
            return None
        return ZERO_VALUES.get(self.annotation)

    def coerce(self, value: Any) -> Any:
        if value is None:
            return self.null_value()
        coercer = COERCERS.get(self.annotation)
        if coercer is None:
            return value
        return coercer(value)


@dataclass(frozen=True)
class TargetShape:
    """Enumerable description of a caller's result type."""

    target: type
    members: Tuple[ShapeMember, ...]
    immutable: bool
    is_mapping: bool = False

    def member(self, name: str) -> Optional[ShapeMember]:
        for member in self.members:
            if member.name == name:
                return member
        return None


@dataclass(frozen=True)
class ColumnBinding:
    """Correspondence between one result column and a shape member."""

    index: int
    column: str
    member: Optional[ShapeMember]


@dataclass(frozen=True)
class ColumnBindingPlan:
    """Once-per-execution mapping from result columns to shape members.

    `columns` lists every result column in order, `mapped` only those with a
    member, and `by_member` holds, for each shape member in declared order,
    the column it reads from (the last one when a label repeats) or None.
    """

    shape: TargetShape
    columns: Tuple[ColumnBinding, ...]
    mapped: Tuple[ColumnBinding, ...]
    by_member: Tuple[Optional[ColumnBinding], ...]


def column_label(entry: ColumnDescription) -> str:
    """Return a column's effective name: its label, else the underlying name."""

    label = entry[0] if len(entry) else None
    if label:
        return str(label)
    name = getattr(entry, "name", None)
    return str(name) if name else ""


def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    origin = get_origin(annotation)
    if origin not in {Union, types.UnionType}:
        return annotation, annotation is None or annotation is Any
    args = get_args(annotation)
    non_null = [arg for arg in args if arg is not type(None)]
    nullable = len(non_null) != len(args)
    if len(non_null) == 1:
        return non_null[0], nullable
    return annotation, nullable


def _type_hints(target: type) -> Dict[str, Any]:
    try:
        return dict(get_type_hints(target))
    except NameError as exc:
        logger.debug(
            "Cannot resolve annotations of %s (%s); using raw annotations",
            target.__qualname__,
            exc,
        )
        return dict(getattr(target, "__annotations__", {}))


def _is_named_tuple(target: type) -> bool:
    return issubclass(target, tuple) and hasattr(target, "_fields")


@lru_cache(maxsize=None)
def describe_shape(target: type) -> TargetShape:
    """Enumerate a target type's members once and cache the description.

    Raises:
        MappingError: If the type exposes no enumerable members.
    """

    if not isinstance(target, type):
        raise MappingError(cast(type, target), "target shape must be a class")

    if issubclass(target, Mapping):
        return TargetShape(target=target, members=(), immutable=False, is_mapping=True)

    hints = _type_hints(target)

    if _is_named_tuple(target):
        defaults = getattr(target, "_field_defaults", {})
        members = []
        for name in target._fields:  # type: ignore[attr-defined]
            annotation, nullable = _unwrap_optional(hints.get(name, Any))
            members.append(
                ShapeMember(
                    name=name,
                    annotation=annotation,
                    nullable=nullable,
                    default=defaults.get(name, MISSING),
                )
            )
        return TargetShape(target=target, members=tuple(members), immutable=True)

    if is_dataclass(target):
        frozen = bool(target.__dataclass_params__.frozen)  # type: ignore[attr-defined]
        members = []
        for field in fields(target):
            if frozen and not field.init:
                continue
            annotation, nullable = _unwrap_optional(hints.get(field.name, field.type))
            members.append(
                ShapeMember(
                    name=field.name,
                    annotation=annotation,
                    nullable=nullable,
                    keyword_only=bool(getattr(field, "kw_only", False)),
                    default=field.default,
                    default_factory=field.default_factory,
                )
            )
        return TargetShape(target=target, members=tuple(members), immutable=frozen)

    if hints:
        members = []
        for name, raw in hints.items():
            if name.startswith("_") or get_origin(raw) is ClassVar or raw is ClassVar:
                continue
            annotation, nullable = _unwrap_optional(raw)
            members.append(ShapeMember(name=name, annotation=annotation, nullable=nullable))
        return TargetShape(target=target, members=tuple(members), immutable=False)

    raise MappingError(target, "type declares no fields or annotations")


class RowMapper:
    """Materializes DB-API result rows as instances of a caller-supplied type."""

    def __init__(self, *, logger: Optional[logging.Logger] = None):
        self._log = logger or logging.getLogger(__name__)

    def plan(
        self,
        description: Sequence[ColumnDescription],
        target: type,
    ) -> ColumnBindingPlan:
        """Resolve result columns against `target` members by exact name."""

        shape = describe_shape(target)
        bindings = []
        for index, entry in enumerate(description):
            column = column_label(entry)
            member = None if shape.is_mapping else shape.member(column)
            bindings.append(ColumnBinding(index=index, column=column, member=member))
        mapped = tuple(b for b in bindings if b.member is not None)
        last_by_name = {b.member.name: b for b in mapped if b.member is not None}
        plan = ColumnBindingPlan(
            shape=shape,
            columns=tuple(bindings),
            mapped=mapped,
            by_member=tuple(last_by_name.get(m.name) for m in shape.members),
        )
        unmapped = [b.column for b in plan.columns if b.member is None]
        if unmapped and not shape.is_mapping:
            self._log.debug(
                "Columns without a member on %s: %s", target.__name__, unmapped
            )
        return plan

    def map_cursor(self, cursor: Any, target: Type[T]) -> List[T]:
        """Map every remaining row of an executed cursor."""

        description = getattr(cursor, "description", None)
        if not description:
            return []
        return self.map_rows(cursor.fetchall(), description, target)

    def map_rows(
        self,
        rows: Iterable[Any],
        description: Sequence[ColumnDescription],
        target: Type[T],
    ) -> List[T]:
        """Map rows in delivery order using a single binding plan."""

        plan = self.plan(description, target)
        if plan.shape.is_mapping:
            return [cast(T, self._to_mapping(plan, row)) for row in rows]
        build = self._build_immutable if plan.shape.immutable else self._build_mutable
        return [build(plan, row) for row in rows]

    def _to_mapping(self, plan: ColumnBindingPlan, row: Any) -> RowMapping:
        mapping = plan.shape.target()
        for binding in plan.columns:
            mapping[binding.column] = _column_value(row, binding)
        return mapping

    def _build_mutable(self, plan: ColumnBindingPlan, row: Any) -> Any:
        target = plan.shape.target
        try:
            instance = target()
        except TypeError as exc:
            raise MappingError(target, f"no usable no-argument constructor ({exc})") from exc
        for binding in plan.mapped:
            member = cast(ShapeMember, binding.member)
            setattr(instance, member.name, _coerce(target, member, binding, row))
        # Plain classes may leave annotated members unset in __init__.
        for member, binding in zip(plan.shape.members, plan.by_member):
            if binding is None and not hasattr(instance, member.name):
                setattr(instance, member.name, member.null_value())
        return instance

    def _build_immutable(self, plan: ColumnBindingPlan, row: Any) -> Any:
        target = plan.shape.target
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for member, binding in zip(plan.shape.members, plan.by_member):
            if binding is None:
                value = member.default_value()
            else:
                value = _coerce(target, member, binding, row)
            if member.keyword_only:
                kwargs[member.name] = value
            else:
                args.append(value)
        try:
            return target(*args, **kwargs)
        except TypeError as exc:
            raise MappingError(
                target,
                f"constructor rejected {len(args) + len(kwargs)} arguments ({exc})",
            ) from exc


def _column_value(row: Any, binding: ColumnBinding) -> Any:
    if isinstance(row, Mapping):
        return row[binding.column]
    return row[binding.index]


def _coerce(target: type, member: ShapeMember, binding: ColumnBinding, row: Any) -> Any:
    value = _column_value(row, binding)
    try:
        return member.coerce(value)
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise MappingError(
            target,
            f"cannot convert column {binding.column!r} value {value!r} "
            f"for member {member.name!r}",
        ) from exc
