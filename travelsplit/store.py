"""SQLite-backed storage of travelers, expenses, transfers and chat settings."""

from __future__ import annotations

import sqlite3
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from .messages import DEFAULT_CURRENCY, DEFAULT_LANG, Context

_MEMORY_ADDRESSES = {"memory", "mem://", ":memory:"}

_SCHEMA = """
CREATE TABLE IF NOT EXISTS chats (
    id INTEGER PRIMARY KEY,
    langid TEXT NOT NULL,
    currency TEXT NOT NULL,
    next_expense INTEGER NOT NULL DEFAULT 1,
    next_transfer INTEGER NOT NULL DEFAULT 1
);
CREATE TABLE IF NOT EXISTS travelers (
    id INTEGER PRIMARY KEY,
    chat_id INTEGER NOT NULL REFERENCES chats(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    UNIQUE (chat_id, name)
);
CREATE TABLE IF NOT EXISTS expenses (
    id INTEGER PRIMARY KEY,
    chat_id INTEGER NOT NULL REFERENCES chats(id) ON DELETE CASCADE,
    number INTEGER NOT NULL,
    description TEXT NOT NULL,
    amount TEXT NOT NULL,
    payer_id INTEGER NOT NULL REFERENCES travelers(id) ON DELETE CASCADE,
    UNIQUE (chat_id, number)
);
CREATE TABLE IF NOT EXISTS shares (
    expense_id INTEGER NOT NULL REFERENCES expenses(id) ON DELETE CASCADE,
    traveler_id INTEGER NOT NULL REFERENCES travelers(id) ON DELETE CASCADE,
    amount TEXT NOT NULL,
    PRIMARY KEY (expense_id, traveler_id)
);
CREATE TABLE IF NOT EXISTS transfers (
    id INTEGER PRIMARY KEY,
    chat_id INTEGER NOT NULL REFERENCES chats(id) ON DELETE CASCADE,
    number INTEGER NOT NULL,
    sender_id INTEGER NOT NULL REFERENCES travelers(id) ON DELETE CASCADE,
    receiver_id INTEGER NOT NULL REFERENCES travelers(id) ON DELETE CASCADE,
    amount TEXT NOT NULL,
    UNIQUE (chat_id, number)
);
"""


@dataclass(frozen=True)
class Traveler:
    name: str
    chat_id: int


@dataclass(frozen=True)
class Expense:
    number: int
    description: str
    amount: Decimal
    payer: str


@dataclass(frozen=True)
class ExpenseDetails:
    number: int
    description: str
    amount: Decimal
    payer: str
    shares: tuple[tuple[str, Decimal], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Transfer:
    number: int
    sender: str
    receiver: str
    amount: Decimal


@dataclass(frozen=True)
class Debt:
    debtor: str
    creditor: str
    debt: Decimal


@dataclass(frozen=True)
class Balance:
    debt: Decimal
    debtor_name: str
    creditor_name: str
    chat: int


def connect(address: str = "memory") -> Store:
    """Open a store: ``memory``/``mem://`` for an in-memory one, else a file path."""
    if address in _MEMORY_ADDRESSES:
        return Store(":memory:")
    return Store(address.removeprefix("file://"))


class Store:
    """Per-chat bookkeeping of a shared trip."""

    def __init__(self, path: str = ":memory:"):
        self._conn = sqlite3.connect(path)
        self._conn.execute("PRAGMA foreign_keys = ON")
        with self._conn:
            self._conn.executescript(_SCHEMA)

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    # -- helpers -----------------------------------------------------------

    def _ensure_chat(self, chat_id: int) -> None:
        self._conn.execute(
            "INSERT OR IGNORE INTO chats (id, langid, currency) VALUES (?, ?, ?)",
            (chat_id, DEFAULT_LANG, DEFAULT_CURRENCY),
        )

    def _next_number(self, chat_id: int, column: str) -> int:
        (number,) = self._conn.execute(
            f"SELECT {column} FROM chats WHERE id = ?", (chat_id,)
        ).fetchone()
        self._conn.execute(
            f"UPDATE chats SET {column} = {column} + 1 WHERE id = ?", (chat_id,)
        )
        return number

    def _traveler_id(self, chat_id: int, name: str) -> int:
        row = self._conn.execute(
            "SELECT id FROM travelers WHERE chat_id = ? AND name = ?", (chat_id, name)
        ).fetchone()
        if row is None:
            raise LookupError(f"traveler {name!r} not found")
        return row[0]

    # -- travelers ---------------------------------------------------------

    def add_traveler(self, chat_id: int, name: str) -> Traveler:
        """Add a traveler; raises sqlite3.IntegrityError if already present."""
        with self._conn:
            self._ensure_chat(chat_id)
            self._conn.execute(
                "INSERT INTO travelers (chat_id, name) VALUES (?, ?)", (chat_id, name)
            )
        return Traveler(name, chat_id)

    def count_travelers(self, chat_id: int, name: str) -> int:
        (count,) = self._conn.execute(
            "SELECT COUNT(*) FROM travelers WHERE chat_id = ? AND name = ?",
            (chat_id, name),
        ).fetchone()
        return count

    def get_traveler(self, chat_id: int, name: str) -> Traveler | None:
        row = self._conn.execute(
            "SELECT name FROM travelers WHERE chat_id = ? AND name = ?", (chat_id, name)
        ).fetchone()
        return Traveler(row[0], chat_id) if row else None

    def list_travelers(self, chat_id: int) -> list[Traveler]:
        rows = self._conn.execute(
            "SELECT name FROM travelers WHERE chat_id = ? ORDER BY name", (chat_id,)
        )
        return [Traveler(name, chat_id) for (name,) in rows]

    def delete_traveler(self, chat_id: int, name: str) -> bool:
        """Delete a traveler with their shares and transfers; True if one was deleted."""
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM travelers WHERE chat_id = ? AND name = ?", (chat_id, name)
            )
        return cursor.rowcount > 0

    # -- expenses ----------------------------------------------------------

    def add_expense(
        self,
        chat_id: int,
        description: str,
        amount: Decimal,
        payer: str,
        shares: Mapping[str, Decimal] | Iterable[tuple[str, Decimal]],
    ) -> Expense:
        """Record an expense paid by ``payer`` and split into ``shares``.

        Raises LookupError if the payer or a participant is not a traveler.
        """
        amount = Decimal(amount)
        share_items = list(dict(shares).items())
        with self._conn:
            self._ensure_chat(chat_id)
            payer_id = self._traveler_id(chat_id, payer)
            share_ids = [
                (self._traveler_id(chat_id, name), Decimal(value))
                for name, value in share_items
            ]
            number = self._next_number(chat_id, "next_expense")
            cursor = self._conn.execute(
                "INSERT INTO expenses (chat_id, number, description, amount, payer_id)"
                " VALUES (?, ?, ?, ?, ?)",
                (chat_id, number, description, str(amount), payer_id),
            )
            self._conn.executemany(
                "INSERT INTO shares (expense_id, traveler_id, amount) VALUES (?, ?, ?)",
                [(cursor.lastrowid, tid, str(value)) for tid, value in share_ids],
            )
        return Expense(number, description, amount, payer)

    def count_expenses(self, chat_id: int, number: int) -> int:
        (count,) = self._conn.execute(
            "SELECT COUNT(*) FROM expenses WHERE chat_id = ? AND number = ?",
            (chat_id, number),
        ).fetchone()
        return count

    def _select_expenses(self, where: str, params: tuple) -> list[Expense]:
        rows = self._conn.execute(
            "SELECT e.number, e.description, e.amount, p.name FROM expenses e"
            " JOIN travelers p ON e.payer_id = p.id"
            f" WHERE {where} ORDER BY e.number",
            params,
        )
        return [
            Expense(number, description, Decimal(amount), payer)
            for number, description, amount, payer in rows
        ]

    def list_expenses(self, chat_id: int, description: str | None = None) -> list[Expense]:
        """All expenses, or those whose description contains ``description``."""
        expenses = self._select_expenses("e.chat_id = ?", (chat_id,))
        if not description:
            return expenses
        needle = description.casefold()
        return [e for e in expenses if needle in e.description.casefold()]

    def expenses_by_payer(self, chat_id: int, name: str) -> list[Expense]:
        return self._select_expenses("e.chat_id = ? AND p.name = ?", (chat_id, name))

    def expense_details(self, chat_id: int, number: int) -> ExpenseDetails | None:
        row = self._conn.execute(
            "SELECT e.id, e.description, e.amount, p.name FROM expenses e"
            " JOIN travelers p ON e.payer_id = p.id"
            " WHERE e.chat_id = ? AND e.number = ?",
            (chat_id, number),
        ).fetchone()
        if row is None:
            return None
        expense_id, description, amount, payer = row
        shares = self._conn.execute(
            "SELECT t.name, s.amount FROM shares s JOIN travelers t"
            " ON s.traveler_id = t.id WHERE s.expense_id = ? ORDER BY t.name",
            (expense_id,),
        )
        return ExpenseDetails(
            number,
            description,
            Decimal(amount),
            payer,
            tuple((name, Decimal(value)) for name, value in shares),
        )

    def delete_expense(self, chat_id: int, number: int) -> bool:
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM expenses WHERE chat_id = ? AND number = ?", (chat_id, number)
            )
        return cursor.rowcount > 0

    # -- transfers ---------------------------------------------------------

    def add_transfer(
        self, chat_id: int, sender: str, receiver: str, amount: Decimal
    ) -> Transfer:
        """Record money given by ``sender`` to ``receiver``.

        Raises LookupError if either is not a traveler.
        """
        amount = Decimal(amount)
        with self._conn:
            self._ensure_chat(chat_id)
            sender_id = self._traveler_id(chat_id, sender)
            receiver_id = self._traveler_id(chat_id, receiver)
            number = self._next_number(chat_id, "next_transfer")
            self._conn.execute(
                "INSERT INTO transfers (chat_id, number, sender_id, receiver_id, amount)"
                " VALUES (?, ?, ?, ?, ?)",
                (chat_id, number, sender_id, receiver_id, str(amount)),
            )
        return Transfer(number, sender, receiver, amount)

    def count_transfers(self, chat_id: int, number: int) -> int:
        (count,) = self._conn.execute(
            "SELECT COUNT(*) FROM transfers WHERE chat_id = ? AND number = ?",
            (chat_id, number),
        ).fetchone()
        return count

    def delete_transfer(self, chat_id: int, number: int) -> bool:
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM transfers WHERE chat_id = ? AND number = ?",
                (chat_id, number),
            )
        return cursor.rowcount > 0

    def list_transfers(self, chat_id: int, name: str | None = None) -> list[Transfer]:
        """All transfers, or those that ``name`` sent or received."""
        rows = self._conn.execute(
            "SELECT x.number, s.name, r.name, x.amount FROM transfers x"
            " JOIN travelers s ON x.sender_id = s.id"
            " JOIN travelers r ON x.receiver_id = r.id"
            " WHERE x.chat_id = ? ORDER BY x.number",
            (chat_id,),
        )
        transfers = [
            Transfer(number, sender, receiver, Decimal(amount))
            for number, sender, receiver, amount in rows
        ]
        if not name:
            return transfers
        return [t for t in transfers if name in (t.sender, t.receiver)]

    # -- debts and balances -------------------------------------------------

    def debts(self, chat_id: int) -> list[Debt]:
        """Net debt between each pair of travelers, largest first."""
        owed: defaultdict[tuple[str, str], Decimal] = defaultdict(Decimal)
        shares = self._conn.execute(
            "SELECT p.name, t.name, s.amount FROM shares s"
            " JOIN expenses e ON s.expense_id = e.id"
            " JOIN travelers p ON e.payer_id = p.id"
            " JOIN travelers t ON s.traveler_id = t.id"
            " WHERE e.chat_id = ?",
            (chat_id,),
        )
        for payer, participant, amount in shares:
            if participant != payer:
                owed[(participant, payer)] += Decimal(amount)
        for transfer in self.list_transfers(chat_id):
            owed[(transfer.receiver, transfer.sender)] += transfer.amount

        pairs = {tuple(sorted(pair)) for pair in owed}
        debts = []
        for a, b in pairs:
            net = owed[(a, b)] - owed[(b, a)]
            if net > 0:
                debts.append(Debt(a, b, net))
            elif net < 0:
                debts.append(Debt(b, a, -net))
        debts.sort(key=lambda d: (-d.debt, d.debtor, d.creditor))
        return debts

    def balances(self, chat_id: int, name: str | None = None) -> list[Balance]:
        """Balances ordered by debt descending, then debtor and creditor names."""
        return [
            Balance(d.debt, d.debtor, d.creditor, chat_id)
            for d in self.debts(chat_id)
            if not name or name in (d.debtor, d.creditor)
        ]

    # -- chat settings -----------------------------------------------------

    def set_currency(self, chat_id: int, currency: str) -> None:
        with self._conn:
            self._ensure_chat(chat_id)
            self._conn.execute(
                "UPDATE chats SET currency = ? WHERE id = ?", (currency, chat_id)
            )

    def set_language(self, chat_id: int, langid: str) -> None:
        with self._conn:
            self._ensure_chat(chat_id)
            self._conn.execute(
                "UPDATE chats SET langid = ? WHERE id = ?", (str(langid), chat_id)
            )

    def chat_settings(self, chat_id: int) -> Context:
        """The chat's language and currency, or the defaults for a new chat."""
        row = self._conn.execute(
            "SELECT langid, currency FROM chats WHERE id = ?", (chat_id,)
        ).fetchone()
        if row is None:
            return Context()
        return Context(langid=row[0], currency=row[1])