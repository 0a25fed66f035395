"""
Database Transaction Management
===============================

This module owns the unit-of-work lifecycle of the record store. Every public
DAO operation runs through a `SessionExecutor`:

- ``runRead(fn)`` opens a session, hands it to ``fn`` and always closes it.
- ``runWrite(fn)`` additionally begins a transaction, commits on success,
  rolls back on any error and always closes the session.

Service functions that need several DAO calls to commit or fail together can
be decorated with ``@transactional``. The decorator binds its session in a
context variable; executors find it there and join it instead of opening
their own, leaving commit/rollback to the decorator.

A failed write inside ``@transactional`` leaves the shared session needing a
rollback: every later DAO call in the same function fails with an
INFRASTRUCTURE ``DaoError`` until the decorator rolls back. Let the error
leave the decorated function instead of catching it and carrying on.
A rollback-only unit joined to an ambient session writes nothing, so the
decorator still commits the rest of the work.

Key features
~~~~~~~~~~~~
- One session per public operation, never pooled or shared by the DAO
- Context variable to propagate an ambient session across calls
- Automatic commit and rollback handling
- Rollback-only units for writes that turn out to be no-ops
- Clean session closure on every exit path
"""

import contextvars
import logging
from functools import wraps
from typing import Callable, Optional, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from recordstore.database.config.connection_engine import connection_engine

logger = logging.getLogger(__name__)

R = TypeVar("R")

# --------------------------------------------------------------------
# Context variable to store the current database session.
# This ensures a session can be passed implicitly across function calls
# without explicitly threading it through arguments.
# --------------------------------------------------------------------
db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy session."""

SessionLocal = sessionmaker(bind=connection_engine, expire_on_commit=False)
"""Default session factory. Objects stay readable after commit and close."""


class UnitOfWork:
    """
    Scoped handle on one logical interaction with the storage engine.

    Attributes
    ----------
    session : Session
        The SQLAlchemy session (connection handle) of this unit.
    owned : bool
        True when this unit opened the session and is responsible for
        committing and closing it. False when it joined an ambient session.
    rollback_only : bool
        When set, a write unit is rolled back instead of committed.
    """

    def __init__(self, session: Session, owned: bool = True):
        self.session = session
        self.owned = owned
        self.rollback_only = False

    @property
    def active(self) -> bool:
        """Whether a transaction is currently open on the session."""
        return self.session.in_transaction()

    def setRollbackOnly(self) -> None:
        """Discard this unit's work instead of committing it."""
        self.rollback_only = True


class SessionExecutor:
    """
    Runs callables inside a freshly opened unit of work.

    Parameters
    ----------
    session_factory : sessionmaker, optional
        Factory producing sessions. Defaults to `SessionLocal`.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def runRead(self, fn: Callable[[UnitOfWork], R]) -> R:
        """
        Run ``fn`` with a read unit of work and return its result.

        No transaction is committed. The session is closed whether ``fn``
        returns or raises.
        """
        ambient = db_session_context.get()
        if ambient is not None:
            return fn(UnitOfWork(ambient, owned=False))

        session = self.session_factory()
        try:
            return fn(UnitOfWork(session))
        finally:
            session.close()

    def runWrite(self, fn: Callable[[UnitOfWork], R]) -> R:
        """
        Run ``fn`` inside a transaction.

        Commits when ``fn`` returns, rolls back when it raises (the error is
        re-raised untouched) or when it marked the unit rollback-only. The
        session is closed in all cases.
        """
        ambient = db_session_context.get()
        if ambient is not None:
            result = fn(UnitOfWork(ambient, owned=False))
            ambient.flush()
            return result

        session = self.session_factory()
        uow = UnitOfWork(session)
        try:
            session.begin()
            result = fn(uow)
            if uow.rollback_only:
                logger.debug("Unit of work marked rollback-only, rolling back.")
                session.rollback()
            else:
                session.flush()   # Push pending changes
                session.commit()  # Commit transaction
        except Exception as e:
            session.rollback()  # Rollback on failure
            raise e
        finally:
            session.close()

        return result


def transactional(func):
    """
    Decorator to wrap functions in a managed SQLAlchemy transaction.

    Ensures that:
    - If a session already exists in context, it is reused.
    - Otherwise, a new session is created, committed, and closed.
    - On errors, the session is rolled back and closed.
    - DAO calls made inside the function join the same session.

    Parameters
    ----------
    func : callable
        The function to wrap. It must accept a `session` keyword argument.

    Returns
    -------
    callable
        The wrapped function, executed within a database transaction.

    Example
    -------
    >>> @transactional
    ... def open_account(owner: Customer, session=None):
    ...     customers.create(owner)
    ...     accounts.create(Account(owner_id=owner.id))
    ...
    >>> open_account(Customer(...))
    """
    @wraps(func)
    def wrap_func(*args, **kwargs):
        # Try to get an existing session from context
        session = db_session_context.get()
        if session:
            return func(*args, session=session, **kwargs)

        # Create a new session if none exists
        session = SessionLocal()
        token = db_session_context.set(session)

        try:
            result = func(*args, session=session, **kwargs)
            session.flush()
            session.commit()
        except Exception as e:
            session.rollback()
            raise e
        finally:
            session.close()
            db_session_context.reset(token)  # Clear context

        return result

    return wrap_func
