"""
Shared fixtures for the recordstore test suite.

Every test gets a fresh in-memory SQLite database. `SessionLocal` (the default
session factory of the DAOs and of ``@transactional``) is re-bound to it for
the duration of the test.
"""

from datetime import datetime
from typing import Dict, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recordstore.database.config.connection_engine import connection_engine, metadata
from recordstore.database.daos.generic_dao import GenericDao
from recordstore.database.helpers.transactionManagement import SessionLocal
from tests.models import Customer, Order


@pytest.fixture
def engine() -> Engine:
    """
    Create an in-memory SQLite engine with the test schema.

    Returns:
        An engine whose single connection is shared by all sessions.
    """
    test_engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    """
    Bind the package `SessionLocal` to the test engine.

    Args:
        engine: The in-memory test engine.

    Returns:
        The re-bound `SessionLocal`.
    """
    SessionLocal.configure(bind=engine)
    yield SessionLocal
    SessionLocal.configure(bind=connection_engine)


@pytest.fixture
def customer_dao(session_factory: sessionmaker) -> GenericDao[Customer]:
    """
    DAO for `Customer` using the default session factory.

    Args:
        session_factory: Fixture binding `SessionLocal` to the test engine.
    """
    return GenericDao(Customer)


@pytest.fixture
def order_dao(session_factory: sessionmaker) -> GenericDao[Order]:
    """
    DAO for `Order` using the default session factory.

    Args:
        session_factory: Fixture binding `SessionLocal` to the test engine.
    """
    return GenericDao(Order)


@pytest.fixture
def customers(customer_dao: GenericDao[Customer]) -> Dict[str, Customer]:
    """
    Store three customers.

    Args:
        customer_dao: DAO used to create the rows.

    Returns:
        The created customers keyed by user name.
    """
    rows = [
        Customer(user_name="roman", email="roman@tribalchief.com", role="admin", active=True,
                 created_on=datetime(2024, 1, 10, 9, 30)),
        Customer(user_name="romeo", email="romeo@example.com", role=None, active=False,
                 created_on=datetime(2024, 1, 12, 18, 0)),
        Customer(user_name="jey", email="jey@example.com", role="member", active=True,
                 created_on=datetime(2024, 1, 15, 8, 0)),
    ]
    return {row.user_name: customer_dao.create(row) for row in rows}


@pytest.fixture
def orders(order_dao: GenericDao[Order], customers: Dict[str, Customer]) -> List[Order]:
    """
    Store orders around the January 2024 boundaries.

    Args:
        order_dao: DAO used to create the rows.
        customers: Fixture providing the stored customers.

    Returns:
        The created orders.
    """
    roman, jey = customers["roman"], customers["jey"]
    rows = [
        Order(customer_id=roman.id, status="open", amount=120, order_date=datetime(2023, 12, 31, 23, 0)),
        Order(customer_id=roman.id, status="closed", amount=80, order_date=datetime(2024, 1, 15, 12, 0)),
        Order(customer_id=jey.id, status="open", amount=45, order_date=datetime(2024, 1, 20, 8, 15)),
        Order(customer_id=jey.id, status="pending", amount=300, order_date=datetime(2024, 2, 10, 10, 0)),
    ]
    return [order_dao.create(row) for row in rows]
