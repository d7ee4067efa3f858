from decimal import Decimal

import pytest

from travelsplit import messages as m
from travelsplit.messages import CommandError, Context, ErrorKind, translate
from travelsplit.store import Transfer, connect
from travelsplit.transfers import (
    delete_transfer,
    format_transfer,
    list_transfers,
    transfer,
)

CHAT = 42


@pytest.fixture
def store():
    s = connect("memory")
    yield s
    s.close()


@pytest.fixture
def ctx():
    return Context()


def _add(store, *names):
    for name in names:
        store.add_traveler(CHAT, name)


def test_format_transfer_pinned(ctx):
    item = Transfer(1, "Alice", "Bob", Decimal("100"))
    assert format_transfer(item, ctx) == "#1 Alice → Bob: €100.00"


def test_transfer_ok(store, ctx):
    _add(store, "Alice", "Bob")
    reply = transfer(store, CHAT, "Alice", "Bob", Decimal("100"), ctx)
    assert reply == translate(None, m.TRANSFER_OK)
    assert len(store.list_transfers(CHAT)) == 1


def test_transfer_updates_balances(store, ctx):
    _add(store, "Alice", "Bob")
    transfer(store, CHAT, "Alice", "Bob", Decimal("100"), ctx)
    balances = store.balances(CHAT)
    assert [(b.debtor_name, b.creditor_name, b.debt) for b in balances] == [
        ("Bob", "Alice", Decimal("100"))
    ]


def test_transfer_receiver_not_found(store, ctx):
    _add(store, "Alice")
    reply = transfer(store, CHAT, "Alice", "Bob", Decimal("100"), ctx)
    assert reply == translate(None, m.TRANSFER_RECEIVER_NOT_FOUND, {"name": "Bob"})
    assert store.list_transfers(CHAT) == []


def test_transfer_sender_not_found(store, ctx):
    _add(store, "Bob")
    reply = transfer(store, CHAT, "Alice", "Bob", Decimal("100"), ctx)
    assert reply == translate(None, m.TRANSFER_SENDER_NOT_FOUND, {"name": "Alice"})


@pytest.mark.parametrize(
    "sender, receiver", [("Alice", ""), ("", "Bob"), ("", "")]
)
def test_transfer_empty_input(store, ctx, sender, receiver):
    with pytest.raises(CommandError) as info:
        transfer(store, CHAT, sender, receiver, Decimal("100"), ctx)
    assert info.value == CommandError(ErrorKind.EMPTY_INPUT)
    assert info.value.translate(ctx).startswith(
        CommandError(ErrorKind.EMPTY_INPUT).translate(None)
    )


def test_transfer_store_failure(store, ctx):
    store.close()
    with pytest.raises(CommandError) as info:
        transfer(store, CHAT, "Alice", "Bob", Decimal("5"), ctx)
    assert info.value == CommandError(
        ErrorKind.TRANSFER, sender="Alice", receiver="Bob", amount=Decimal("5")
    )


def test_delete_transfer_ok(store, ctx):
    _add(store, "Alice", "Bob")
    transfer(store, CHAT, "Alice", "Bob", Decimal("100"), ctx)
    reply = delete_transfer(store, CHAT, 1, ctx)
    assert reply == translate(None, m.DELETE_TRANSFER_OK, {"number": 1})
    assert store.list_transfers(CHAT) == []


def test_delete_transfer_not_found(store, ctx):
    reply = delete_transfer(store, CHAT, 1, ctx)
    assert reply == translate(None, m.DELETE_TRANSFER_NOT_FOUND, {"number": 1})


def test_delete_transfer_twice(store, ctx):
    _add(store, "Alice", "Bob")
    transfer(store, CHAT, "Alice", "Bob", Decimal("100"), ctx)
    first = delete_transfer(store, CHAT, 1, ctx)
    second = delete_transfer(store, CHAT, 1, ctx)
    assert first == translate(None, m.DELETE_TRANSFER_OK, {"number": 1})
    assert second == translate(None, m.DELETE_TRANSFER_NOT_FOUND, {"number": 1})


def test_delete_transfer_store_failure(store, ctx):
    store.close()
    with pytest.raises(CommandError) as info:
        delete_transfer(store, CHAT, 3, ctx)
    assert info.value == CommandError(ErrorKind.DELETE_TRANSFER, number=3)


def _three_with_transfers(store, ctx):
    _add(store, "Alice", "Bob", "Charlie")
    transfer(store, CHAT, "Alice", "Bob", Decimal("100"), ctx)
    transfer(store, CHAT, "Bob", "Charlie", Decimal("50"), ctx)


def test_list_transfers_ok(store, ctx):
    _three_with_transfers(store, ctx)
    transfers = store.list_transfers(CHAT)
    assert len(transfers) == 2
    expected = "\n".join(format_transfer(t, ctx) for t in transfers)
    assert list_transfers(store, CHAT, "", ctx) == expected
    assert list_transfers(store, CHAT, "", ctx) == (
        "#1 Alice → Bob: €100.00\n#2 Bob → Charlie: €50.00"
    )


def test_list_transfers_by_name_ok(store, ctx):
    _three_with_transfers(store, ctx)
    alice = store.list_transfers(CHAT, "Alice")
    assert len(alice) == 1
    assert list_transfers(store, CHAT, "Alice", ctx) == format_transfer(alice[0], ctx)
    bob = store.list_transfers(CHAT, "Bob")
    assert len(bob) == 2
    assert list_transfers(store, CHAT, "Bob", ctx) == "\n".join(
        format_transfer(t, ctx) for t in bob
    )


def test_list_transfers_not_found(store, ctx):
    assert list_transfers(store, CHAT, "", ctx) == translate(
        None, m.LIST_TRANSFERS_NOT_FOUND
    )


def test_list_transfers_name_not_found(store, ctx):
    _add(store, "Alice", "Bob")
    transfer(store, CHAT, "Alice", "Bob", Decimal("100"), ctx)
    reply = list_transfers(store, CHAT, "Charlie", ctx)
    assert reply == translate(None, m.LIST_TRANSFERS_NAME_NOT_FOUND, {"name": "Charlie"})


def test_list_transfers_store_failure(store, ctx):
    store.close()
    with pytest.raises(CommandError) as info:
        list_transfers(store, CHAT, "Alice", ctx)
    assert info.value == CommandError(ErrorKind.LIST_TRANSFERS, name="Alice")


def test_transfers_are_per_chat(store, ctx):
    _add(store, "Alice", "Bob")
    transfer(store, CHAT, "Alice", "Bob", Decimal("10"), ctx)
    assert list_transfers(store, CHAT + 1, "", ctx) == translate(
        None, m.LIST_TRANSFERS_NOT_FOUND
    )