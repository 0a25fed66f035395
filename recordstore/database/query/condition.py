"""
Query conditions
================

A `Condition` describes one predicate (field, operator, value(s)) of a dynamic
query. Conditions are immutable and carry no behavior; the `QueryBuilder`
validates them and turns them into bound predicates.

Conditions are usually built with the factory helpers:

.. code-block:: python

    from recordstore.database.query import condition as c

    conditions = [
        c.like("last_name", "Do%"),
        c.dateGt("order_date", "01-Jan-24"),
        c.dateLt("order_date", "01-Feb-24"),
        c.in_("status", "open", "pending"),
        c.isNotNull("email"),
    ]

The factories produce exactly what direct construction produces, e.g.
``c.in_("status", "open")`` equals ``Condition("status", Operator.IN, ["open"])``.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Union


class Operator(str, Enum):
    """Supported condition operators, valued by their query symbol."""

    EQUALS = "="
    NOT_EQUALS = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"
    BETWEEN = "BETWEEN"

    @classmethod
    def _missing_(cls, value):
        # Names and ">date"/"<date" spellings.
        if not isinstance(value, str):
            return None
        token = " ".join(value.replace("_", " ").split()).upper()
        if token.endswith("DATE") and token != "DATE":
            token = token[:-4].strip()
        for member in cls:
            if token in (member.value, member.name.replace("_", " ")):
                return member
        return None

    @property
    def symbol(self) -> str:
        return self.value


NULL_CHECKS = frozenset({Operator.IS_NULL, Operator.IS_NOT_NULL})
SET_OPERATORS = frozenset({Operator.IN, Operator.NOT_IN})
PATTERN_OPERATORS = frozenset({Operator.LIKE, Operator.NOT_LIKE})
COMPARISONS = frozenset({
    Operator.EQUALS, Operator.NOT_EQUALS, Operator.GT, Operator.LT, Operator.GE, Operator.LE,
})

DateValue = Union[date, str]


@dataclass(frozen=True)
class Condition:
    """
    One predicate of a dynamic query.

    Attributes
    ----------
    field : str
        Mapped attribute name the predicate applies to. May be qualified
        with a join alias (``"ven.name"``).
    operator : Operator
        The comparison to apply. Strings are resolved to `Operator`; an
        unknown operator is kept as given and rejected by the builder.
    value : Any
        Compared value. A tuple of values for IN/NOT_IN, the lower bound
        for BETWEEN, unset for null checks.
    second_value : Any
        Upper bound, only meaningful for BETWEEN.
    """

    field: str
    operator: Operator
    value: Any = None
    second_value: Any = None

    def __post_init__(self):
        operator = self.operator
        if not isinstance(operator, Operator):
            try:
                operator = Operator(operator)
            except ValueError:
                pass
        object.__setattr__(self, "operator", operator)
        object.__setattr__(self, "field", self.field.strip() if isinstance(self.field, str) else self.field)

        if operator in SET_OPERATORS and self.value is not None:
            if isinstance(self.value, (list, tuple, set, frozenset)):
                values = tuple(self.value)
            else:
                values = (self.value,)
            object.__setattr__(self, "value", values)

    def __str__(self) -> str:
        op = self.operator.symbol if isinstance(self.operator, Operator) else str(self.operator)
        if self.operator is Operator.BETWEEN:
            return f"{self.field} {op} {self.value!r} AND {self.second_value!r}"
        if self.operator in NULL_CHECKS:
            return f"{self.field} {op}"
        return f"{self.field} {op} {self.value!r}"


def eq(field: str, value: Any) -> Condition:
    return Condition(field, Operator.EQUALS, value)


def ne(field: str, value: Any) -> Condition:
    return Condition(field, Operator.NOT_EQUALS, value)


def gt(field: str, value: Any) -> Condition:
    return Condition(field, Operator.GT, value)


def lt(field: str, value: Any) -> Condition:
    return Condition(field, Operator.LT, value)


def ge(field: str, value: Any) -> Condition:
    return Condition(field, Operator.GE, value)


def le(field: str, value: Any) -> Condition:
    return Condition(field, Operator.LE, value)


def like(field: str, pattern: str) -> Condition:
    """Pattern match; the caller supplies the ``%``/``_`` wildcards."""
    return Condition(field, Operator.LIKE, pattern)


def notLike(field: str, pattern: str) -> Condition:
    return Condition(field, Operator.NOT_LIKE, pattern)


def in_(field: str, *values: Any) -> Condition:
    """Set membership. ``in_("status", "a", "b")`` and ``in_("status", ["a", "b"])`` are equivalent."""
    if len(values) == 1 and isinstance(values[0], (list, tuple, set, frozenset)):
        values = tuple(values[0])
    return Condition(field, Operator.IN, values)


def notIn(field: str, *values: Any) -> Condition:
    if len(values) == 1 and isinstance(values[0], (list, tuple, set, frozenset)):
        values = tuple(values[0])
    return Condition(field, Operator.NOT_IN, values)


def isNull(field: str) -> Condition:
    return Condition(field, Operator.IS_NULL)


def isNotNull(field: str) -> Condition:
    return Condition(field, Operator.IS_NOT_NULL)


def between(field: str, low: Any, high: Any) -> Condition:
    """Inclusive range ``low <= field <= high``."""
    return Condition(field, Operator.BETWEEN, low, high)


# Date variants. Values may be date/datetime objects or dd-MMM-yy literals;
# literals are parsed by the builder against the field's column type.

def dateEq(field: str, value: DateValue) -> Condition:
    return Condition(field, Operator.EQUALS, value)


def dateGt(field: str, value: DateValue) -> Condition:
    return Condition(field, Operator.GT, value)


def dateLt(field: str, value: DateValue) -> Condition:
    return Condition(field, Operator.LT, value)


def dateBetween(field: str, start: DateValue, end: DateValue) -> Condition:
    return Condition(field, Operator.BETWEEN, start, end)
