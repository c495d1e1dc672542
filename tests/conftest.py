from datetime import date
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from accounts.models import User
from campaigns.models import Campaign, Participant
from campaigns.reporting import EmployeeSalesRecord, ReportingError, SalesRecord
from stores.models import Store, StoreUser


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="admin@test.com",
        password="testpass123",
        first_name="Admin",
        last_name="User",
        role=User.Role.ADMIN,
    )


@pytest.fixture
def manager_user(db):
    return User.objects.create_user(
        email="manager@test.com",
        password="testpass123",
        first_name="Manager",
        last_name="User",
        role=User.Role.MANAGER,
    )


@pytest.fixture
def sales_user(db):
    return User.objects.create_user(
        email="sales@test.com",
        password="testpass123",
        first_name="Sales",
        last_name="User",
        role=User.Role.SALES,
    )


@pytest.fixture
def store(db):
    return Store.objects.create(number="12", name="Boutique Centre", region="Sud")


@pytest.fixture
def other_store(db):
    return Store.objects.create(number="34", name="Boutique Gare", region="Sud")


@pytest.fixture
def store_user_sales(store, sales_user):
    return StoreUser.objects.create(store=store, user=sales_user, is_default=True)


@pytest.fixture
def campaign(manager_user):
    return Campaign.objects.create(
        name="Campagne Ete",
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 30),
        goal_type=Campaign.GoalType.VALUE,
        supplier_ids=["10", "11"],
        created_by=manager_user,
    )


@pytest.fixture
def participants(campaign, store, other_store):
    return [
        Participant.objects.create(
            campaign=campaign,
            store=store,
            group_id="1",
            target_value=Decimal("100.00"),
            target_quantity=Decimal("10"),
        ),
        Participant.objects.create(
            campaign=campaign,
            store=other_store,
            group_id="1",
            target_value=Decimal("50.00"),
            target_quantity=Decimal("5"),
        ),
    ]


class FakeReportingClient:
    """In-memory stand-in for ``ReportingClient``."""

    def __init__(self, store_records=None, employee_records=None, error=None):
        self.store_records = list(store_records or [])
        self.employee_records = list(employee_records or [])
        self.error = error
        self.calls = []

    def fetch_store_sales(self, start_date, end_date, filters=None):
        self.calls.append(("store", start_date, end_date, filters))
        if self.error:
            raise ReportingError(self.error)
        return self.store_records

    def fetch_employee_sales(self, start_date, end_date, filters=None):
        self.calls.append(("employee", start_date, end_date, filters))
        if self.error:
            raise ReportingError(self.error)
        return self.employee_records


@pytest.fixture
def store_sales():
    return [
        SalesRecord(
            store_code="12",
            store_name="Boutique Centre",
            gross_quantity=Decimal("12"),
            returned_quantity=Decimal("2"),
            gross_value=Decimal("120"),
            returned_value=Decimal("20"),
        ),
        SalesRecord(
            store_code="34",
            store_name="Boutique Gare",
            gross_quantity=Decimal("4"),
            gross_value=Decimal("40"),
        ),
    ]


@pytest.fixture
def employee_sales():
    return [
        EmployeeSalesRecord(
            store_code="12",
            store_name="Boutique Centre",
            employee_id="501",
            employee_name="Ana",
            gross_quantity=Decimal("3"),
            gross_value=Decimal("90"),
        ),
        EmployeeSalesRecord(
            store_code="34",
            store_name="Boutique Gare",
            employee_id="502",
            employee_name="Bruno",
            gross_quantity=Decimal("2"),
            gross_value=Decimal("40"),
        ),
    ]


@pytest.fixture
def fake_client(monkeypatch, store_sales, employee_sales):
    """Route every ``get_reporting_client()`` call to an in-memory client."""
    client = FakeReportingClient(store_sales, employee_sales)
    monkeypatch.setattr("campaigns.services.get_reporting_client", lambda: client)
    return client


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def manager_client(api_client, manager_user):
    api_client.force_authenticate(user=manager_user)
    return api_client


@pytest.fixture
def sales_client(api_client, sales_user):
    api_client.force_authenticate(user=sales_user)
    return api_client
