"""
Tests for the `generic_dao.py` module.
"""

from datetime import datetime
from typing import Dict, List

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from recordstore.database.daos.generic_dao import GenericDao, SearchOutcome
from recordstore.database.exceptions import DaoError, ErrorKind
from recordstore.database.query import condition as c
from recordstore.database.query.query_builder import Join
from tests.models import Customer, Order


class TestCrud:
    """Tests for create / read / update / delete."""

    def test_create_then_find_by_id(self, customer_dao: GenericDao[Customer]):
        """Test that a created entity gets an id and reads back with the same fields."""
        created = customer_dao.create(
            Customer(user_name="roman", email="roman@tribalchief.com", role="admin",
                     created_on=datetime(2024, 1, 10, 9, 30))
        )
        assert created.id is not None

        found = customer_dao.findById(created.id)
        assert found is not None
        assert (found.user_name, found.email, found.role, found.active, found.created_on) == (
            "roman", "roman@tribalchief.com", "admin", True, datetime(2024, 1, 10, 9, 30)
        )

    def test_find_by_id_absent(self, customer_dao: GenericDao[Customer]):
        """Test that a missing id yields None."""
        assert customer_dao.findById(404) is None

    def test_find_all(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer]):
        """Test listing every stored row."""
        assert {row.user_name for row in customer_dao.findAll()} == {"roman", "romeo", "jey"}

    def test_find_all_empty(self, customer_dao: GenericDao[Customer]):
        """Test that an empty table yields an empty list, not None."""
        assert customer_dao.findAll() == []

    def test_create_constraint_violation(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer]):
        """Test that a unique constraint failure is wrapped as an infrastructure error."""
        with pytest.raises(DaoError) as excinfo:
            customer_dao.create(Customer(user_name="fake", email="roman@tribalchief.com"))

        assert excinfo.value.kind is ErrorKind.INFRASTRUCTURE
        assert excinfo.value.code == 9
        assert "create on Customer failed" in excinfo.value.description
        assert len(customer_dao.findAll()) == 3

    def test_update(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer]):
        """Test that an update is merged and persisted."""
        roman = customers["roman"]
        roman.email = "roman.reigns@tribalchief.com"

        merged = customer_dao.update(roman)

        assert merged.email == "roman.reigns@tribalchief.com"
        assert customer_dao.findById(roman.id).email == "roman.reigns@tribalchief.com"

    def test_update_absent(self, customer_dao: GenericDao[Customer], mocker: MockerFixture):
        """Test that updating a row that does not exist writes nothing."""
        commit = mocker.spy(Session, "commit")

        assert customer_dao.update(Customer(id=99, user_name="ghost", email="ghost@example.com")) is None
        assert commit.call_count == 0
        assert customer_dao.findAll() == []

    def test_delete(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer]):
        """Test deleting by entity."""
        customer_dao.delete(customers["romeo"])
        assert customer_dao.findById(customers["romeo"].id) is None
        assert len(customer_dao.findAll()) == 2

    def test_delete_by_id(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer]):
        """Test that deleting an existing id returns True and the row is gone."""
        assert customer_dao.deleteById(customers["jey"].id) is True
        assert customer_dao.findById(customers["jey"].id) is None

    def test_delete_by_id_absent(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer],
                                 mocker: MockerFixture):
        """Test that deleting a missing id returns False without committing."""
        commit = mocker.spy(Session, "commit")

        assert customer_dao.deleteById(12345) is False
        assert commit.call_count == 0
        assert len(customer_dao.findAll()) == 3

    def test_delete_by_field(self, order_dao: GenericDao[Order], orders: List[Order]):
        """Test that every matching row is removed and counted."""
        assert order_dao.deleteByField("status", "open") == 2
        assert sorted(row.status for row in order_dao.findAll()) == ["closed", "pending"]

    def test_delete_by_field_none_matches_null(self, customer_dao: GenericDao[Customer],
                                               customers: Dict[str, Customer]):
        """Test that None deletes the rows where the field is NULL."""
        assert customer_dao.deleteByField("role", None) == 1
        assert {row.user_name for row in customer_dao.findAll()} == {"roman", "jey"}

    def test_delete_by_field_no_match(self, order_dao: GenericDao[Order], orders: List[Order],
                                      mocker: MockerFixture):
        """Test that no match removes nothing and commits nothing."""
        commit = mocker.spy(Session, "commit")

        assert order_dao.deleteByField("status", "archived") == 0
        assert commit.call_count == 0
        assert order_dao.count() == 4

    def test_delete_by_unknown_field(self, order_dao: GenericDao[Order]):
        """Test that the field is validated before anything is deleted."""
        with pytest.raises(DaoError) as excinfo:
            order_dao.deleteByField("state", "open")
        assert excinfo.value.kind is ErrorKind.VALIDATION


class TestFieldLookups:
    """Tests for findByField and findUniqueByField."""

    def test_find_by_field(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer]):
        """Test equality lookup on one field."""
        assert [row.user_name for row in customer_dao.findByField("role", "admin")] == ["roman"]
        assert customer_dao.findByField("role", "owner") == []

    def test_find_by_field_none_matches_null(self, customer_dao: GenericDao[Customer],
                                             customers: Dict[str, Customer]):
        """Test that None looks for NULL."""
        assert [row.user_name for row in customer_dao.findByField("role", None)] == ["romeo"]

    def test_find_by_unknown_field(self, customer_dao: GenericDao[Customer]):
        """Test that unknown fields are validation errors."""
        with pytest.raises(DaoError) as excinfo:
            customer_dao.findByField("password", "hunter2")
        assert excinfo.value.kind is ErrorKind.VALIDATION

    def test_find_unique_by_field(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer]):
        """Test the zero / one / many outcomes."""
        assert customer_dao.findUniqueByField("email", "nobody@example.com") is None
        assert customer_dao.findUniqueByField("email", "jey@example.com").user_name == "jey"

        with pytest.raises(DaoError) as excinfo:
            customer_dao.findUniqueByField("active", True)
        assert excinfo.value.kind is ErrorKind.CONFLICT
        assert "Multiple" in excinfo.value.description


class TestSearch:
    """Tests for search and count."""

    def test_strings_match_as_substrings(self, customer_dao: GenericDao[Customer],
                                         customers: Dict[str, Customer]):
        """Test that string criteria use LIKE %value% and the rest equality."""
        rows = customer_dao.search({"user_name": "rom"}, "user_name", "ASC")
        assert [row.user_name for row in rows] == ["roman", "romeo"]

        rows = customer_dao.search({"user_name": "rom", "active": True})
        assert [row.user_name for row in rows] == ["roman"]

    def test_string_on_date_column_matches_its_text(self, customer_dao: GenericDao[Customer],
                                                    customers: Dict[str, Customer]):
        """Test that a string criterion on a DateTime field matches as a substring of the stored value."""
        assert [row.user_name for row in customer_dao.search({"created_on": "2024-01-12"})] == ["romeo"]
        assert len(customer_dao.search({"created_on": "2024-01"})) == 3
        assert customer_dao.count({"created_on": "2023"}) == 0

    def test_sort_and_pagination(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer]):
        """Test descending order with an offset/limit window."""
        rows = customer_dao.search({}, "created_on", "DESC", 1, 1)
        assert [row.user_name for row in rows] == ["romeo"]

    def test_search_with_conditions(self, order_dao: GenericDao[Order], orders: List[Order]):
        """Test that a sequence of conditions is accepted as criteria."""
        rows = order_dao.search([c.in_("status", "open", "pending"), c.ge("amount", 100)], "amount", "ASC")
        assert [row.amount for row in rows] == [120, 300]

    def test_search_no_match_is_empty(self, customer_dao: GenericDao[Customer], customers: Dict[str, Customer]):
        """Test that no match is an empty list, not an error."""
        assert customer_dao.search({"user_name": "undertaker"}) == []

    def test_search_bad_criteria(self, customer_dao: GenericDao[Customer]):
        """Test that bad criteria raise a validation error."""
        with pytest.raises(DaoError) as excinfo:
            customer_dao.search({"nickname": "tribal chief"})
        assert excinfo.value.kind is ErrorKind.VALIDATION

    def test_count(self, order_dao: GenericDao[Order], orders: List[Order]):
        """Test counting all rows and filtered rows."""
        assert order_dao.count() == 4
        assert order_dao.count([c.eq("status", "open")]) == 2
        assert order_dao.count({"status": "clos"}) == 1


class TestDates:
    """Tests for date-driven lookups."""

    def test_find_created_today(self, customer_dao: GenericDao[Customer]):
        """Test the [start of today, start of tomorrow) window one second before midnight."""
        for name, created_on in [
            ("yesterday", datetime(2024, 1, 14, 23, 59, 59)),
            ("today", datetime(2024, 1, 15, 0, 0, 1)),
            ("tomorrow", datetime(2024, 1, 16, 0, 0, 1)),
            ("midnight", datetime(2024, 1, 16, 0, 0, 0)),
        ]:
            customer_dao.create(Customer(user_name=name, email=f"{name}@example.com", created_on=created_on))

        rows = customer_dao.findCreatedToday("created_on", now=datetime(2024, 1, 15, 23, 59, 59))
        assert [row.user_name for row in rows] == ["today"]

    def test_date_range_applies_both_bounds(self, order_dao: GenericDao[Order], orders: List[Order]):
        """Test gt/lt on the same date field with dd-MMM-yy literals."""
        outcome = order_dao.findWhere(
            [c.gt("order_date", "01-Jan-24"), c.lt("order_date", "01-Feb-24")], orderBy="order_date"
        )
        assert outcome.ok
        assert [row.order_date for row in outcome.records] == [
            datetime(2024, 1, 15, 12, 0),
            datetime(2024, 1, 20, 8, 15),
        ]


class TestFindWhere:
    """Tests for the structured search path."""

    def test_no_data(self, customer_dao: GenericDao[Customer]):
        """Test that zero rows produce the no-data payload."""
        outcome = customer_dao.findWhere([c.eq("user_name", "undertaker")])

        assert isinstance(outcome, SearchOutcome)
        assert not outcome.ok
        assert outcome.records == []
        assert outcome.error.error_code == 7
        assert outcome.error.error_description == "No data available on table customer"

    def test_infrastructure_failure(self, order_dao: GenericDao[Order], engine: Engine):
        """Test that an engine failure produces a distinct infrastructure code."""
        Order.__table__.drop(engine)
        try:
            outcome = order_dao.findWhere([c.eq("status", "open")])
        finally:
            Order.__table__.create(engine)

        assert not outcome.ok
        assert outcome.error.error_code == ErrorKind.INFRASTRUCTURE.code == 9
        assert outcome.error.error_code != ErrorKind.NOT_FOUND.code

    def test_validation_failure(self, customer_dao: GenericDao[Customer]):
        """Test that bad conditions come back as a payload instead of raising."""
        outcome = customer_dao.findWhere([c.gt("created_on", "yesterday")])
        assert outcome.error.error_code == ErrorKind.VALIDATION.code

    def test_with_join_and_pagination(self, customer_dao: GenericDao[Customer], orders: List[Order]):
        """Test filtering on a joined relationship."""
        outcome = customer_dao.findWhere(
            [c.eq("o.status", "open")], orderBy="user_name", direction="DESC", limit=5,
            joins=[Join("orders", "o")],
        )
        assert [row.user_name for row in outcome.records] == ["roman", "jey"]

    def test_join_pages_hold_distinct_customers(self, customer_dao: GenericDao[Customer], orders: List[Order]):
        """Test that a one-to-many join fills each page with distinct customers."""
        first = customer_dao.findWhere(
            [c.isNotNull("o.id")], orderBy="user_name", limit=2, joins=[Join("orders", "o")]
        )
        second = customer_dao.findWhere(
            [c.isNotNull("o.id")], orderBy="user_name", offset=1, limit=1, joins=[Join("orders", "o")]
        )

        assert [row.user_name for row in first.records] == ["jey", "roman"]
        assert [row.user_name for row in second.records] == ["roman"]
