"""
Generic DAO

Purpose
-------
One data-access object for any SQLAlchemy-mapped entity. Provides:
- Create / read / update / delete by entity or identifier
- Lookup by a single field (list or unique result)
- Criteria search with sorting and pagination
- Dynamic condition queries built by `QueryBuilder`
- Counting and "created today" lookups

Design
------
- Every public method runs in its own unit of work through `SessionExecutor`:
  reads open and close a session, writes additionally commit or roll back.
  Inside a ``@transactional`` service function the DAO joins the ambient
  session instead.
- Queries are always parameterized; field names are validated against the
  entity mapping before anything reaches the database.
- Sessions are created with ``expire_on_commit=False``, so returned entities
  stay readable after the unit of work is closed.

Usage
-----
.. code-block:: python

    from recordstore.database.daos.generic_dao import GenericDao
    from recordstore.database.query import condition as c

    customers = GenericDao(Customer)

    roman = customers.create(Customer(user_name="roman", email="roman@tribalchief.com"))
    customers.findById(roman.id)                       # Customer | None
    customers.search({"user_name": "rom", "active": True}, "user_name", "ASC", 0, 10)
    customers.findUniqueByField("email", "roman@tribalchief.com")
    outcome = customers.findWhere([c.gt("created_on", "01-Jan-24")])
    if not outcome.ok:
        print(outcome.error.error_code)
    customers.deleteById(roman.id)                     # True

Error Handling
--------------
- Engine failures (`SQLAlchemyError`) are logged and re-raised as
  ``DaoError`` with kind ``INFRASTRUCTURE``; the original error is chained.
- Bad field names, operators or date literals raise ``DaoError`` with kind
  ``VALIDATION``.
- `findUniqueByField` raises kind ``CONFLICT`` when several rows match.
- Absence is not an error: ``None``, ``[]`` or ``False`` is returned.
- `findWhere` never raises a ``DaoError``; it returns the error payload.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field as dataclass_field
from datetime import datetime
from typing import Any, Generic, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from sqlalchemy import inspect as sa_inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from recordstore.api.models import ErrorMessage
from recordstore.database.exceptions import DaoError, ErrorKind
from recordstore.database.helpers.dateUtil import day_window
from recordstore.database.helpers.transactionManagement import SessionExecutor, UnitOfWork
from recordstore.database.query import condition as c
from recordstore.database.query.condition import Condition
from recordstore.database.query.query_builder import Join, QueryBuilder, QueryPlan, SortDirection

logger = logging.getLogger(__name__)

T = TypeVar("T")

Criteria = Union[Mapping[str, Any], Sequence[Condition]]


@dataclass
class SearchOutcome(Generic[T]):
    """
    Result of the structured search path.

    Exactly one of ``records`` (non-empty) or ``error`` is meaningful.
    """

    records: List[T] = dataclass_field(default_factory=list)
    error: Optional[ErrorMessage] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class GenericDao(Generic[T]):
    """
    Data Access Object (DAO) for one mapped entity class.

    Parameters
    ----------
    entity_class : type
        The SQLAlchemy-mapped class handled by this DAO.
    session_factory : sessionmaker, optional
        Factory for the per-call sessions. Defaults to the package `SessionLocal`.
    """

    def __init__(self, entity_class: Type[T], session_factory: Optional[sessionmaker] = None):
        mapper = sa_inspect(entity_class)
        self.entity_class = entity_class
        self.record_type = entity_class.__name__
        self.table_name = mapper.local_table.name
        self.executor = SessionExecutor(session_factory)
        self.query_builder = QueryBuilder(mapper.registry)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @contextmanager
    def _translateErrors(self, operation: str):
        """Log engine failures and re-raise them as INFRASTRUCTURE errors."""
        try:
            yield
        except DaoError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error in GenericDao.{operation} ({self.record_type}). Error Message: {e}")
            raise DaoError.infrastructure(e, context=f"{operation} on {self.record_type} failed") from e

    def _identity(self, entity: T):
        identity = sa_inspect(self.entity_class).primary_key_from_instance(entity)
        if any(part is None for part in identity):
            return None
        return identity[0] if len(identity) == 1 else tuple(identity)

    def _plan(
        self,
        conditions: Sequence[Condition] = (),
        order_by: Optional[str] = "",
        direction=SortDirection.ASC,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        joins: Sequence[Join] = (),
    ) -> QueryPlan:
        return self.query_builder.build(
            self.record_type, conditions, order_by=order_by, direction=direction,
            offset=offset, limit=limit, joins=joins,
        )

    def _fetch(self, plan: QueryPlan) -> List[T]:
        def read(uow: UnitOfWork) -> List[T]:
            stmt = plan.paginate(plan.to_statement())
            return list(uow.session.scalars(stmt).unique().all())

        return self.executor.runRead(read)

    @staticmethod
    def criteriaToConditions(criteria: Optional[Criteria]) -> List[Condition]:
        """
        Normalize search criteria.

        A mapping ``{field: value}`` becomes one condition per entry: strings
        match as substrings (``LIKE %value%``), None matches NULL, anything else
        matches by equality. A sequence of conditions is used as is.
        """
        if not criteria:
            return []
        if not isinstance(criteria, Mapping):
            return list(criteria)

        conditions = []
        for field, value in criteria.items():
            if isinstance(value, str):
                conditions.append(c.like(field, f"%{value}%"))
            elif value is None:
                conditions.append(c.isNull(field))
            else:
                conditions.append(c.eq(field, value))
        return conditions

    # ------------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------------
    def create(self, entity: T) -> T:
        """
        Persist a new entity.

        Parameters
        ----------
        entity : T
            Transient entity instance. Its generated identifier is set on it.

        Returns
        -------
        T
            The same instance, now carrying its identifier.

        Raises
        ------
        DaoError
            INFRASTRUCTURE on constraint or connectivity failures.
        """
        def write(uow: UnitOfWork) -> T:
            uow.session.add(entity)
            uow.session.flush()
            return entity

        with self._translateErrors("create"):
            created = self.executor.runWrite(write)
        logger.debug(f"Created {self.record_type} with id {self._identity(created)!r}.")
        return created

    def update(self, entity: T) -> Optional[T]:
        """
        Merge the state of ``entity`` into its stored row.

        Returns
        -------
        T | None
            The merged entity, or None (and nothing is written) when the entity
            has no identifier or no stored row.
        """
        identity = self._identity(entity)

        def write(uow: UnitOfWork) -> Optional[T]:
            if identity is None or uow.session.get(self.entity_class, identity) is None:
                uow.setRollbackOnly()
                return None
            merged = uow.session.merge(entity)
            uow.session.flush()
            return merged

        with self._translateErrors("update"):
            merged = self.executor.runWrite(write)
        if merged is None:
            logger.info(f"Update skipped: {self.record_type} with id {identity!r} does not exist.")
        return merged

    def delete(self, entity: T) -> None:
        """Delete the stored row of ``entity``. Deleting an absent row is a no-op."""
        identity = self._identity(entity)
        if identity is None:
            logger.info(f"Delete skipped: {self.record_type} instance has no identifier.")
            return
        self.deleteById(identity)

    def deleteById(self, identifier: Any) -> bool:
        """
        Delete the row with the given identifier.

        Returns
        -------
        bool
            True if a row was removed, False if none existed (nothing is committed).
        """
        def write(uow: UnitOfWork) -> bool:
            target = uow.session.get(self.entity_class, identifier)
            if target is None:
                uow.setRollbackOnly()
                return False
            uow.session.delete(target)
            uow.session.flush()
            return True

        with self._translateErrors("deleteById"):
            removed = self.executor.runWrite(write)
        if not removed:
            logger.info(f"No {self.record_type} with id {identifier!r} to delete.")
        return removed

    def deleteByField(self, field: str, value: Any) -> int:
        """
        Delete every row whose ``field`` equals ``value``.

        ``value=None`` deletes rows where the field is NULL.

        Returns
        -------
        int
            Number of rows removed. Nothing is committed when it is 0.

        Raises
        ------
        DaoError
            VALIDATION for an unknown field, INFRASTRUCTURE on engine failures.
        """
        condition = c.isNull(field) if value is None else c.eq(field, value)

        def write(uow: UnitOfWork) -> int:
            targets = uow.session.scalars(plan.to_statement()).unique().all()
            if not targets:
                uow.setRollbackOnly()
                return 0
            for target in targets:
                uow.session.delete(target)
            uow.session.flush()
            return len(targets)

        with self._translateErrors("deleteByField"):
            plan = self._plan([condition])
            removed = self.executor.runWrite(write)
        logger.debug(f"Deleted {removed} {self.record_type} rows where {condition}.")
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def findById(self, identifier: Any) -> Optional[T]:
        """Return the entity with the given identifier, or None."""
        with self._translateErrors("findById"):
            return self.executor.runRead(lambda uow: uow.session.get(self.entity_class, identifier))

    def findAll(self) -> List[T]:
        """Return every stored entity (possibly an empty list)."""
        with self._translateErrors("findAll"):
            return self.executor.runRead(
                lambda uow: list(uow.session.scalars(select(self.entity_class)).all())
            )

    def findByField(self, field: str, value: Any) -> List[T]:
        """
        Return all entities whose ``field`` equals ``value``.

        ``value=None`` matches rows where the field is NULL.
        """
        condition = c.isNull(field) if value is None else c.eq(field, value)
        with self._translateErrors("findByField"):
            return self._fetch(self._plan([condition]))

    def findUniqueByField(self, field: str, value: Any) -> Optional[T]:
        """
        Return the single entity whose ``field`` equals ``value``.

        Returns
        -------
        T | None
            The match, or None when nothing matches.

        Raises
        ------
        DaoError
            CONFLICT when more than one row matches.
        """
        condition = c.isNull(field) if value is None else c.eq(field, value)
        with self._translateErrors("findUniqueByField"):
            matches = self._fetch(self._plan([condition], limit=2))
        if len(matches) > 1:
            raise DaoError.conflict(
                f"Multiple {self.record_type} results found for {field} = {value!r}; expected at most one"
            )
        return matches[0] if matches else None

    def search(
        self,
        criteria: Optional[Criteria] = None,
        sortField: Optional[str] = "",
        direction=SortDirection.ASC,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        """
        Search with criteria, one-field sorting and pagination.

        Parameters
        ----------
        criteria : Mapping[str, Any] | Sequence[Condition], optional
            Field/value mapping (see `criteriaToConditions`) or conditions.
        sortField : str, optional
            Field to order by; empty leaves the order to the store.
        direction : SortDirection | str
            ``"ASC"`` or ``"DESC"``.
        offset, limit : int, optional
            Pagination window.

        Returns
        -------
        list[T]
            Matching entities, possibly empty.
        """
        conditions = self.criteriaToConditions(criteria)
        with self._translateErrors("search"):
            plan = self._plan(conditions, sortField, direction, offset, limit)
            return self._fetch(plan)

    def count(self, conditions: Optional[Criteria] = None) -> int:
        """Count all entities, or those matching ``conditions``."""
        plan = self._plan(self.criteriaToConditions(conditions))
        with self._translateErrors("count"):
            return self.executor.runRead(lambda uow: uow.session.scalar(plan.to_count_statement()))

    def findCreatedToday(self, field: str, now: Optional[datetime] = None) -> List[T]:
        """
        Return entities whose ``field`` falls on the current local day.

        Parameters
        ----------
        field : str
            A date/datetime field, e.g. ``"created_on"``.
        now : datetime, optional
            Local "now" to compute the day from. Defaults to the current time.

        Returns
        -------
        list[T]
            Rows with ``start of today <= field < start of tomorrow``.
        """
        start, end = day_window(now)
        conditions = [c.ge(field, start), c.lt(field, end)]
        with self._translateErrors("findCreatedToday"):
            return self._fetch(self._plan(conditions))

    def findWhere(
        self,
        conditions: Sequence[Condition] = (),
        orderBy: Optional[str] = "",
        direction=SortDirection.ASC,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        joins: Sequence[Join] = (),
    ) -> SearchOutcome[T]:
        """
        Structured search path.

        Returns
        -------
        SearchOutcome[T]
            - records, when at least one row matches
            - error code 7 ("no data available"), when nothing matches
            - the failure's own code (9 for engine errors, 8 for bad
              conditions), when the query could not run
        """
        try:
            records = self._findWhere(conditions, orderBy, direction, offset, limit, joins)
        except DaoError as e:
            logger.warning(f"GenericDao.findWhere on {self.record_type} failed: {e.description}")
            return SearchOutcome(error=e.toErrorMessage())

        if not records:
            return SearchOutcome(error=ErrorMessage(
                error_code=ErrorKind.NOT_FOUND.code,
                error_description=f"No data available on table {self.table_name}",
            ))
        logger.debug(f"GenericDao.findWhere on {self.record_type} returned {len(records)} rows.")
        return SearchOutcome(records=records)

    def _findWhere(self, conditions, orderBy, direction, offset, limit, joins) -> List[T]:
        with self._translateErrors("findWhere"):
            plan = self._plan(conditions, orderBy, direction, offset, limit, joins)
            return self._fetch(plan)
