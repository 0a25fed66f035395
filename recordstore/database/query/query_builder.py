"""
Dynamic Query Builder
=====================

Translates a record-type name, a sequence of `Condition` objects and optional
sort/pagination parameters into a `QueryPlan`: an ordered list of predicates
whose values live in named bind slots, never in the query text.

Rules
~~~~~
- Predicates are joined with ``AND`` in the order the conditions were given.
- Every value is bound: ``field > :slot``, ``field LIKE :slot``,
  ``field IN (:slot_0, :slot_1)``, ``field BETWEEN :slot_lo AND :slot_hi``.
  Null checks bind nothing.
- Slot names derive from the field name and stay unique within a plan: a
  field used twice gets ``field`` and ``field_2``, so two range bounds on the
  same date column both apply.
- Field names (conditions and sort) are checked against the mapped column
  attributes of the record type. Unknown names, unknown record types,
  unsupported operators and malformed values raise ``DaoError`` with kind
  ``VALIDATION``.
- String values compared against date-like fields are parsed from the
  ``dd-MMM-yy`` literal format before binding.
- Offset and limit are kept on the plan and applied at execution time by
  `QueryPlan.paginate`.
- Joined relationships only decide which primary rows match: each primary row
  is returned once, pagination counts primary rows, and the sort field must
  belong to the primary record type.
- LIKE / NOT LIKE bind their pattern as text; non-text columns are compared
  through their string form.

Comma-separated record types (``"Contract,vendor"``) are still understood for
backward compatibility: the first name is aliased by its first three letters
and every further name is joined as a relationship of it. This form emits a
``DeprecationWarning``; pass ``joins=[Join("vendor", "ven")]`` instead.

Usage
-----
.. code-block:: python

    from recordstore.database.query import condition as c
    from recordstore.database.query.query_builder import QueryBuilder

    plan = QueryBuilder().build(
        "Order",
        [c.gt("order_date", "01-Jan-24"), c.lt("order_date", "01-Feb-24")],
        order_by="order_date",
        direction="DESC",
        limit=20,
    )
    plan.query_text
    # 'from Order where order_date > :order_date AND order_date < :order_date_2 order by order_date DESC'
    rows = session.scalars(plan.paginate(plan.to_statement())).all()
"""

import logging
import operator as op
import warnings
from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import Select, String, bindparam, cast, func, select, tuple_
from sqlalchemy.orm import aliased

from recordstore.database.entities import mapping
from recordstore.database.exceptions import DaoError
from recordstore.database.helpers.dateUtil import DATE_LITERAL_FORMAT, parse_date_literal
from recordstore.database.query.condition import (
    NULL_CHECKS,
    PATTERN_OPERATORS,
    SET_OPERATORS,
    Condition,
    Operator,
)

logger = logging.getLogger(__name__)

_COMPARATORS = {
    Operator.EQUALS: op.eq,
    Operator.NOT_EQUALS: op.ne,
    Operator.GT: op.gt,
    Operator.LT: op.lt,
    Operator.GE: op.ge,
    Operator.LE: op.le,
}


class SortDirection(str, Enum):
    """Sort direction of the single ``ORDER BY`` field."""

    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            token = value.strip().upper()
            aliases = {"ASCENDING": "ASC", "DESCENDING": "DESC"}
            token = aliases.get(token, token)
            for member in cls:
                if member.value == token:
                    return member
        return None


@dataclass(frozen=True)
class Join:
    """Explicit join of a relationship of the primary record type under ``alias``."""

    relationship: str
    alias: str


@dataclass(frozen=True)
class Source:
    """A record collection the plan reads from: the primary type or a joined relationship."""

    entity: Any
    name: str
    alias: Optional[str] = None
    relationship: Optional[str] = None


@dataclass(frozen=True)
class Predicate:
    """
    One resolved condition.

    ``slots`` lists the bind slot names in the order they appear in the
    rendered fragment; it is empty for null checks.
    """

    field: str
    operator: Operator
    slots: Tuple[str, ...] = ()
    column: Any = dataclass_field(default=None, compare=False, repr=False)

    def render(self) -> str:
        """Render the predicate as query text with ``:slot`` placeholders."""
        if self.operator in NULL_CHECKS:
            return f"{self.field} {self.operator.symbol}"
        if self.operator is Operator.BETWEEN:
            low, high = self.slots
            return f"{self.field} BETWEEN :{low} AND :{high}"
        if self.operator in SET_OPERATORS:
            if not self.slots:
                # IN () is not valid SQL; an empty set matches nothing (IN) or everything (NOT IN)
                return "1 = 0" if self.operator is Operator.IN else "1 = 1"
            placeholders = ", ".join(f":{slot}" for slot in self.slots)
            return f"{self.field} {self.operator.symbol} ({placeholders})"
        return f"{self.field} {self.operator.symbol} :{self.slots[0]}"

    def toExpression(self, parameters: Dict[str, Any]):
        """Build the SQLAlchemy expression, binding each slot by name."""
        column = self.column
        if column is None:
            raise DaoError.validation(f"Field '{self.field}' is not bound to a record type")

        if self.operator in PATTERN_OPERATORS:
            # Patterns are text; non-text columns are compared through their string form.
            target = column if isinstance(column.type, String) else cast(column, String)
            pattern = bindparam(self.slots[0], parameters[self.slots[0]], type_=String())
            return target.like(pattern) if self.operator is Operator.LIKE else target.not_like(pattern)

        binds = [bindparam(slot, parameters[slot], type_=column.type) for slot in self.slots]

        if self.operator is Operator.IS_NULL:
            return column.is_(None)
        if self.operator is Operator.IS_NOT_NULL:
            return column.is_not(None)
        if self.operator is Operator.BETWEEN:
            return column.between(binds[0], binds[1])
        if self.operator is Operator.IN:
            return column.in_(binds)
        if self.operator is Operator.NOT_IN:
            return column.not_in(binds)
        return _COMPARATORS[self.operator](column, binds[0])


@dataclass
class QueryPlan:
    """
    Intermediate, per-call description of a query.

    Attributes
    ----------
    record_type : str
        Record-type name as given by the caller.
    sources : tuple[Source, ...]
        Primary source first, then joins. Empty when no record type was given.
    predicates : list[Predicate]
        Resolved predicates, one per condition, in caller order.
    parameters : dict[str, Any]
        Bound values keyed by slot name.
    order_by : str | None
        Sort field, or None for store-defined order.
    direction : SortDirection
        Sort direction.
    offset, limit : int | None
        Pagination, applied at execution time.
    """

    record_type: str
    sources: Tuple[Source, ...] = ()
    predicates: List[Predicate] = dataclass_field(default_factory=list)
    parameters: Dict[str, Any] = dataclass_field(default_factory=dict)
    order_by: Optional[str] = None
    direction: SortDirection = SortDirection.ASC
    offset: Optional[int] = None
    limit: Optional[int] = None
    order_column: Any = dataclass_field(default=None, repr=False)

    @property
    def slots(self) -> List[str]:
        return [slot for predicate in self.predicates for slot in predicate.slots]

    @property
    def where_clause(self) -> str:
        return " AND ".join(predicate.render() for predicate in self.predicates)

    @property
    def source_clause(self) -> str:
        if not self.sources:
            return ""
        primary = self.sources[0]
        reference = primary.alias or primary.name
        if primary.alias:
            text = f"select {primary.alias} from {primary.name} {primary.alias}"
        else:
            text = f"from {primary.name}"
        for source in self.sources[1:]:
            text += f" inner join {reference}.{source.relationship} {source.alias}"
        return text

    @property
    def query_text(self) -> str:
        """Full query text with placeholders; pagination is not part of it."""
        parts = [self.source_clause] if self.sources else []
        if self.predicates:
            parts.append(f"where {self.where_clause}")
        if self.order_by:
            parts.append(f"order by {self.order_by} {self.direction.value}")
        return " ".join(parts)

    def _primary(self) -> Source:
        if not self.sources:
            raise DaoError.validation("No record type given: the query has no source to select from")
        return self.sources[0]

    def _apply_joins_and_filters(self, stmt: Select) -> Select:
        primary = self.sources[0]
        predicates = [predicate.toExpression(self.parameters) for predicate in self.predicates]
        if len(self.sources) == 1:
            return stmt.where(*predicates) if predicates else stmt

        # Joined sources only select which primary rows match, so each primary row
        # appears once and offset/limit count primary rows.
        keys = mapping.primary_key_attributes(primary.entity)
        matching = select(*keys)
        for source in self.sources[1:]:
            matching = matching.join(getattr(primary.entity, source.relationship).of_type(source.entity))
        if predicates:
            matching = matching.where(*predicates)
        matching = matching.correlate(None)

        if len(keys) == 1:
            return stmt.where(keys[0].in_(matching))
        return stmt.where(tuple_(*keys).in_(matching))

    def to_statement(self) -> Select:
        """SELECT of the primary record type with all predicates and the sort applied."""
        primary = self._primary()
        stmt = self._apply_joins_and_filters(select(primary.entity))
        if self.order_column is not None:
            ordering = self.order_column.desc() if self.direction is SortDirection.DESC else self.order_column.asc()
            stmt = stmt.order_by(ordering)
        return stmt

    def to_count_statement(self) -> Select:
        primary = self._primary()
        return self._apply_joins_and_filters(select(func.count()).select_from(primary.entity))

    def paginate(self, stmt: Select) -> Select:
        if self.offset is not None:
            stmt = stmt.offset(self.offset)
        if self.limit is not None:
            stmt = stmt.limit(self.limit)
        return stmt


class _SlotAllocator:
    """Hands out bind slot names, suffixing repeats with _2, _3, ..."""

    def __init__(self):
        self.used = set()

    def allocate(self, base: str) -> str:
        name = base
        suffix = 2
        while name in self.used:
            name = f"{base}_{suffix}"
            suffix += 1
        self.used.add(name)
        return name


class QueryBuilder:
    """
    Builds `QueryPlan` objects against a mapping registry.

    Parameters
    ----------
    registry : sqlalchemy.orm.registry, optional
        Registry record types are resolved from. Defaults to the package's
        declarative base.
    """

    def __init__(self, registry=None):
        self.registry = registry or mapping.default_registry()

    def build(
        self,
        record_type: str,
        conditions: Sequence[Condition] = (),
        order_by: Optional[str] = "",
        direction=SortDirection.ASC,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        joins: Sequence[Join] = (),
    ) -> QueryPlan:
        """
        Build a plan for ``record_type`` filtered by ``conditions``.

        Raises
        ------
        DaoError
            With kind VALIDATION for unknown record types, fields, aliases or
            operators, malformed condition values, bad date literals, an
            unknown sort direction or negative pagination values.
        """
        record_type = record_type or ""
        plan = QueryPlan(
            record_type=record_type,
            sources=self._resolveSources(record_type, joins),
            direction=self._resolveDirection(direction),
            offset=self._checkPagination("offset", offset),
            limit=self._checkPagination("limit", limit),
        )

        slots = _SlotAllocator()
        for condition in conditions:
            predicate, values = self._buildPredicate(plan, condition, slots)
            plan.predicates.append(predicate)
            plan.parameters.update(values)

        if order_by:
            source, _, column = self._resolveField(plan, order_by)
            if source is not None and source is not plan.sources[0]:
                raise DaoError.validation(
                    f"Sort field '{order_by}' must belong to the record type '{plan.sources[0].name}', not a join"
                )
            plan.order_by = order_by
            plan.order_column = column

        logger.debug(f"Built query plan: {plan.query_text} (slots: {plan.slots})")
        return plan

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------
    def _resolveSources(self, record_type: str, joins: Sequence[Join]) -> Tuple[Source, ...]:
        names = [name.strip() for name in record_type.split(",") if name.strip()]
        if not names:
            return ()

        joins = list(joins)
        primary_alias = None
        if len(names) > 1:
            warnings.warn(
                "Comma-separated record types are deprecated; pass joins=[Join(relationship, alias)] instead.",
                DeprecationWarning,
                stacklevel=3,
            )
            primary_alias = names[0][:3]
            joins = [Join(name, name[:3]) for name in names[1:]] + joins

        entity_class = mapping.resolve_entity(names[0], self.registry)
        if entity_class is None:
            raise DaoError.validation(f"Unknown record type '{names[0]}'")

        primary_entity = aliased(entity_class, name=primary_alias) if primary_alias else entity_class
        sources = [Source(primary_entity, entity_class.__name__, primary_alias)]
        aliases = {primary_alias} if primary_alias else set()

        for join in joins:
            target = mapping.relationship_target(entity_class, join.relationship)
            if target is None:
                raise DaoError.validation(
                    f"Record type '{entity_class.__name__}' has no relationship '{join.relationship}'"
                )
            if not join.alias or join.alias in aliases:
                raise DaoError.validation(f"Join alias '{join.alias}' is empty or already in use")
            aliases.add(join.alias)
            sources.append(Source(aliased(target, name=join.alias), target.__name__, join.alias, join.relationship))

        return tuple(sources)

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------
    def _resolveField(self, plan: QueryPlan, field: str):
        """Return ``(source, attribute, column)`` for a plain or alias-qualified field."""
        if not isinstance(field, str) or not field.strip():
            raise DaoError.validation("Condition without a field name")
        if not plan.sources:
            # Nothing to validate against; the missing source is reported when the plan is executed.
            return None, field.split(".")[-1], None

        source = plan.sources[0]
        attribute = field
        if "." in field:
            qualifier, attribute = field.split(".", 1)
            matches = [s for s in plan.sources if qualifier in (s.alias, s.name)]
            if not matches:
                raise DaoError.validation(f"Unknown alias '{qualifier}' in field '{field}'")
            source = matches[0]

        if attribute not in mapping.attribute_names(source.entity):
            raise DaoError.validation(
                f"Unknown field '{field}' on record type '{source.name}'; check the condition column names"
            )
        return source, attribute, getattr(source.entity, attribute)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------
    def _buildPredicate(self, plan: QueryPlan, condition: Condition, slots: _SlotAllocator):
        operator = condition.operator
        if not isinstance(operator, Operator):
            raise DaoError.validation(f"Unsupported operator '{operator}' on field '{condition.field}'")

        source, attribute, column = self._resolveField(plan, condition.field)
        self._checkShape(condition)

        base = condition.field.replace(".", "_")
        values: Dict[str, Any] = {}

        if operator in NULL_CHECKS:
            names: Tuple[str, ...] = ()
        elif operator is Operator.BETWEEN:
            names = (slots.allocate(f"{base}_lo"), slots.allocate(f"{base}_hi"))
            values[names[0]] = self._coerce(source, attribute, condition, condition.value)
            values[names[1]] = self._coerce(source, attribute, condition, condition.second_value)
        elif operator in SET_OPERATORS:
            names = tuple(slots.allocate(f"{base}_{index}") for index in range(len(condition.value)))
            for name, item in zip(names, condition.value):
                values[name] = self._coerce(source, attribute, condition, item)
        else:
            names = (slots.allocate(base),)
            values[names[0]] = self._coerce(source, attribute, condition, condition.value)

        return Predicate(condition.field, operator, names, column), values

    @staticmethod
    def _checkShape(condition: Condition) -> None:
        operator = condition.operator
        field = condition.field
        if operator is Operator.BETWEEN:
            if condition.value is None or condition.second_value is None:
                raise DaoError.validation(f"BETWEEN on '{field}' requires both a lower and an upper bound")
            return
        if operator in NULL_CHECKS:
            if condition.value is not None or condition.second_value is not None:
                raise DaoError.validation(f"{operator.symbol} on '{field}' takes no value")
            return
        if condition.value is None:
            raise DaoError.validation(
                f"{operator.symbol} on '{field}' requires a value; use isNull/isNotNull to match NULL"
            )
        if condition.second_value is not None:
            raise DaoError.validation(f"{operator.symbol} on '{field}' takes a single value")
        if operator in PATTERN_OPERATORS and not isinstance(condition.value, str):
            raise DaoError.validation(f"{operator.symbol} on '{field}' requires a string pattern")

    @staticmethod
    def _coerce(source: Optional[Source], attribute: str, condition: Condition, value: Any) -> Any:
        """Parse dd-MMM-yy literals compared against date-like fields."""
        if not isinstance(value, str):
            return value
        if condition.operator in PATTERN_OPERATORS:
            return value

        if source is None:
            temporal = mapping.name_signals_temporal(attribute)
        else:
            temporal = mapping.is_temporal(source.entity, attribute)
        if not temporal:
            return value

        try:
            parsed = parse_date_literal(value)
        except ValueError as e:
            raise DaoError.validation(
                f"Invalid date '{value}' for field '{condition.field}', expected {DATE_LITERAL_FORMAT}: {e}"
            ) from e

        if source is not None and mapping.is_date_only(source.entity, attribute):
            return parsed.date()
        return parsed

    # ------------------------------------------------------------------
    # Sort & pagination
    # ------------------------------------------------------------------
    @staticmethod
    def _resolveDirection(direction) -> SortDirection:
        if isinstance(direction, SortDirection):
            return direction
        try:
            return SortDirection(direction or SortDirection.ASC)
        except ValueError as e:
            raise DaoError.validation(f"Unknown sort direction '{direction}', expected ASC or DESC") from e

    @staticmethod
    def _checkPagination(name: str, value: Optional[int]) -> Optional[int]:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise DaoError.validation(f"Pagination {name} must be a non-negative integer, got {value!r}")
        return value
