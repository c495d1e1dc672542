import pytest

from accounts.models import User
from stores.models import StoreUser
from stores.services import headcounts_for, parse_id_list, parse_uuid_list

pytestmark = pytest.mark.django_db


def test_headcounts_count_active_non_admin_members(store, other_store, sales_user, manager_user, admin_user):
    StoreUser.objects.create(store=store, user=sales_user)
    StoreUser.objects.create(store=store, user=manager_user)
    StoreUser.objects.create(store=store, user=admin_user)
    inactive = User.objects.create_user(email="old@test.com", password="x", role=User.Role.SALES, is_active=False)
    StoreUser.objects.create(store=store, user=inactive)

    counts = headcounts_for([store.pk, other_store.pk])

    assert counts == {store.pk: 2, other_store.pk: 0}


def test_headcounts_for_no_store():
    assert headcounts_for([]) == {}


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, []),
        ("", []),
        ("1, 2,,3 ", ["1", "2", "3"]),
        (["4,5", "6"], ["4", "5", "6"]),
    ],
)
def test_parse_id_list(raw, expected):
    assert parse_id_list(raw) == expected


def test_parse_uuid_list(store):
    assert parse_uuid_list(f"{store.pk}, ") == [store.pk]
    assert parse_uuid_list(None) == []


def test_parse_uuid_list_rejects_non_uuid():
    with pytest.raises(ValueError):
        parse_uuid_list("12")
