"""
Mapped entities used by the test suite.

They are registered on the package's declarative base so `GenericDao` and
`QueryBuilder` resolve them by name like any application entity.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import TEXT, VARCHAR, Boolean, Date, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recordstore.database.config.connection_engine import declarativeBase


class Customer(declarativeBase):
    """A customer with a unique email and a creation timestamp."""

    __tablename__ = "customer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(VARCHAR(255), nullable=False)
    email: Mapped[str] = mapped_column(VARCHAR(255), nullable=False, unique=True)
    role: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_on: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    birthday: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    orders: Mapped[List["Order"]] = relationship(back_populates="customer")


class Order(declarativeBase):
    """An order placed by a customer."""

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customer.id"), nullable=False)
    status: Mapped[str] = mapped_column(TEXT, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    order_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    customer: Mapped[Customer] = relationship(back_populates="orders")
