import sqlite3
from decimal import Decimal

import pytest

from travelsplit.messages import DEFAULT_CURRENCY, DEFAULT_LANG
from travelsplit.store import Balance, Debt, Traveler, connect

CHAT = 7


@pytest.fixture
def store():
    s = connect("memory")
    yield s
    s.close()


@pytest.fixture
def trip(store):
    for name in ("Alice", "Bob", "Charlie"):
        store.add_traveler(CHAT, name)
    return store


def test_add_and_count_traveler(store):
    assert store.count_travelers(CHAT, "Alice") == 0
    store.add_traveler(CHAT, "Alice")
    assert store.count_travelers(CHAT, "Alice") == 1
    assert store.get_traveler(CHAT, "Alice") == Traveler("Alice", CHAT)


def test_duplicate_traveler_rejected(store):
    store.add_traveler(CHAT, "Alice")
    with pytest.raises(sqlite3.IntegrityError):
        store.add_traveler(CHAT, "Alice")


def test_travelers_are_per_chat(store):
    store.add_traveler(CHAT, "Alice")
    assert store.get_traveler(CHAT + 1, "Alice") is None
    assert store.list_travelers(CHAT + 1) == []


def test_list_travelers_sorted(store):
    store.add_traveler(CHAT, "Bob")
    store.add_traveler(CHAT, "Alice")
    assert [t.name for t in store.list_travelers(CHAT)] == ["Alice", "Bob"]


def test_delete_traveler(trip):
    assert trip.delete_traveler(CHAT, "Alice") is True
    assert trip.delete_traveler(CHAT, "Alice") is False
    assert trip.count_travelers(CHAT, "Alice") == 0


def test_expense_numbers_increase(trip):
    first = trip.add_expense(CHAT, "Dinner", Decimal("30"), "Alice", {"Alice": Decimal("30")})
    second = trip.add_expense(CHAT, "Lunch", Decimal("20"), "Bob", {"Bob": Decimal("20")})
    assert (first.number, second.number) == (1, 2)
    assert trip.count_expenses(CHAT, 2) == 1


def test_expense_unknown_payer(trip):
    with pytest.raises(LookupError):
        trip.add_expense(CHAT, "Dinner", Decimal("10"), "Zed", {"Alice": Decimal("10")})
    assert trip.list_expenses(CHAT) == []


def test_expense_details_round_trip(trip):
    shares = {"Bob": Decimal("40"), "Alice": Decimal("60")}
    trip.add_expense(CHAT, "Hotel", Decimal("100"), "Alice", shares)
    details = trip.expense_details(CHAT, 1)
    assert details.description == "Hotel"
    assert details.payer == "Alice"
    assert dict(details.shares) == shares
    assert [name for name, _ in details.shares] == ["Alice", "Bob"]
    assert trip.expense_details(CHAT, 2) is None


def test_list_expenses_by_description_and_payer(trip):
    trip.add_expense(CHAT, "Test expense 1", Decimal("10"), "Alice", {"Alice": Decimal("10")})
    trip.add_expense(CHAT, "Test expense 2", Decimal("10"), "Bob", {"Bob": Decimal("10")})
    assert [e.number for e in trip.list_expenses(CHAT, "1")] == [1]
    assert [e.description for e in trip.expenses_by_payer(CHAT, "Bob")] == ["Test expense 2"]


def test_delete_expense(trip):
    trip.add_expense(CHAT, "Dinner", Decimal("10"), "Alice", {"Bob": Decimal("10")})
    assert trip.delete_expense(CHAT, 1) is True
    assert trip.count_expenses(CHAT, 1) == 0
    assert trip.debts(CHAT) == []


def test_debts_from_shares(trip):
    trip.add_expense(
        CHAT, "Dinner", Decimal("100"), "Alice", {"Alice": Decimal("50"), "Bob": Decimal("50")}
    )
    assert trip.debts(CHAT) == [Debt("Bob", "Alice", Decimal("50"))]


def test_transfer_settles_debt(trip):
    trip.add_expense(CHAT, "Dinner", Decimal("50"), "Alice", {"Bob": Decimal("50")})
    trip.add_transfer(CHAT, "Bob", "Alice", Decimal("50"))
    assert trip.debts(CHAT) == []


def test_transfer_round_trip_and_filter(trip):
    trip.add_transfer(CHAT, "Alice", "Bob", Decimal("100"))
    trip.add_transfer(CHAT, "Bob", "Charlie", Decimal("50"))
    assert len(trip.list_transfers(CHAT)) == 2
    assert [t.number for t in trip.list_transfers(CHAT, "Alice")] == [1]
    assert len(trip.list_transfers(CHAT, "Bob")) == 2
    assert trip.count_transfers(CHAT, 2) == 1
    assert trip.delete_transfer(CHAT, 1) is True
    assert trip.count_transfers(CHAT, 1) == 0


def test_transfer_unknown_receiver(trip):
    with pytest.raises(LookupError):
        trip.add_transfer(CHAT, "Alice", "Zed", Decimal("1"))


def test_balances_sorted_and_filtered(trip):
    trip.add_expense(CHAT, "A", Decimal("10"), "Alice", {"Bob": Decimal("10")})
    trip.add_expense(CHAT, "B", Decimal("30"), "Alice", {"Charlie": Decimal("30")})
    balances = trip.balances(CHAT)
    debts = [b.debt for b in balances]
    assert debts == sorted(debts, reverse=True)
    assert balances[0] == Balance(Decimal("30"), "Charlie", "Alice", CHAT)
    only_bob = trip.balances(CHAT, "Bob")
    assert [(b.debtor_name, b.creditor_name) for b in only_bob] == [("Bob", "Alice")]


def test_chat_settings(store):
    settings = store.chat_settings(CHAT)
    assert (settings.langid, settings.currency) == (DEFAULT_LANG, DEFAULT_CURRENCY)
    store.set_currency(CHAT, "USD")
    store.set_language(CHAT, "it-IT")
    settings = store.chat_settings(CHAT)
    assert (settings.langid, settings.currency) == ("it-IT", "USD")


def test_file_store_persists(tmp_path):
    path = str(tmp_path / "trip.db")
    with connect(path) as store:
        store.add_traveler(CHAT, "Alice")
    with connect(path) as store:
        assert [t.name for t in store.list_travelers(CHAT)] == ["Alice"]