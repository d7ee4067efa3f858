from decimal import Decimal

import pytest

from travelsplit.balances import show_balances
from travelsplit.messages import CommandError, Context, ErrorKind
from travelsplit.store import Store

CHAT = 42


@pytest.fixture
def store():
    with Store() as s:
        yield s


def _add(store, *names):
    for name in names:
        store.add_traveler(CHAT, name)


def test_no_name_single_debt(store):
    _add(store, "Alice", "Bob")
    store.add_expense(CHAT, "Dinner", Decimal("100"), "Alice",
                      {"Alice": Decimal("50"), "Bob": Decimal("50")})
    assert show_balances(store, CHAT, "", Context()) == "Bob owes €50.00 to Alice"


def test_no_name_ordering(store):
    _add(store, "Alice", "Bob", "Charlie")
    store.add_expense(CHAT, "Dinner", Decimal("90"), "Alice",
                      {"Alice": Decimal("30"), "Bob": Decimal("30"), "Charlie": Decimal("30")})
    store.add_expense(CHAT, "Taxi", Decimal("20"), "Bob", {"Charlie": Decimal("20")})
    assert show_balances(store, CHAT, "", Context()) == (
        "Bob owes €30.00 to Alice\n"
        "Charlie owes €30.00 to Alice\n"
        "Charlie owes €20.00 to Bob"
    )


def test_settled_up_when_empty(store):
    assert show_balances(store, CHAT, "", Context()) == "Everyone is settled up!"


def test_settled_up_after_transfer(store):
    _add(store, "Alice", "Bob")
    store.add_expense(CHAT, "Dinner", Decimal("100"), "Alice",
                      {"Alice": Decimal("50"), "Bob": Decimal("50")})
    store.add_transfer(CHAT, "Bob", "Alice", Decimal("50"))
    assert show_balances(store, CHAT, "", Context()) == "Everyone is settled up!"


def test_settled_up_when_residual_rounds_to_zero(store):
    _add(store, "Alice", "Bob")
    store.add_expense(CHAT, "Dinner", Decimal("100"), "Alice",
                      {"Alice": Decimal("50"), "Bob": Decimal("50")})
    store.add_transfer(CHAT, "Bob", "Alice", Decimal("49.999"))
    assert show_balances(store, CHAT, "", Context()) == "Everyone is settled up!"


def test_with_name_creditor_and_debtor(store):
    _add(store, "Alice", "Bob")
    store.add_expense(CHAT, "Dinner", Decimal("100"), "Alice",
                      {"Alice": Decimal("50"), "Bob": Decimal("50")})
    assert show_balances(store, CHAT, "Alice", Context()) == "Alice is owed €50.00 Bob"
    assert show_balances(store, CHAT, "Bob", Context()) == "Bob owes €50.00 Alice"


def test_with_name_filters_other_pairs(store):
    _add(store, "Alice", "Bob", "Charlie")
    store.add_expense(CHAT, "Dinner", Decimal("90"), "Alice",
                      {"Alice": Decimal("30"), "Bob": Decimal("30"), "Charlie": Decimal("30")})
    store.add_expense(CHAT, "Taxi", Decimal("20"), "Bob", {"Charlie": Decimal("20")})
    assert show_balances(store, CHAT, "Bob", Context()) == (
        "Bob owes €30.00 Alice\nBob is owed €20.00 Charlie"
    )


def test_traveler_settled_up(store):
    _add(store, "Alice", "Bob", "Charlie")
    store.add_expense(CHAT, "Taxi", Decimal("20"), "Bob", {"Charlie": Decimal("20")})
    assert show_balances(store, CHAT, "Alice", Context()) == "Alice is settled up!"


def test_traveler_not_found(store):
    assert (
        show_balances(store, CHAT, "UnknownTraveler", Context())
        == "Traveler UnknownTraveler not found."
    )


def test_italian_and_other_currency(store):
    _add(store, "Alice", "Bob")
    store.add_expense(CHAT, "Cena", Decimal("100"), "Alice",
                      {"Alice": Decimal("50"), "Bob": Decimal("50")})
    ctx = Context(langid="it-IT", currency="USD")
    assert show_balances(store, CHAT, "", ctx) == "Bob deve $50.00 a Alice"


def test_store_failure_without_name(store):
    store.close()
    with pytest.raises(CommandError) as info:
        show_balances(store, CHAT, "", Context())
    assert info.value.kind is ErrorKind.SHOW_BALANCES


def test_store_failure_with_name(store):
    store.close()
    with pytest.raises(CommandError) as info:
        show_balances(store, CHAT, "Alice", Context())
    assert info.value == CommandError(ErrorKind.SHOW_BALANCES, name="Alice")