"""The chat bot: routes messages to commands and runs the add-expense dialogue."""

from __future__ import annotations

import argparse
import enum
import logging
import re
import sqlite3
import sys
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from . import messages as m
from .balances import show_balances
from .command import (
    Command,
    CommandKind,
    help,
    help_message,
    parse_command,
    unknown_command,
)
from .expenses import delete_expense, format_expense, list_expenses, show_expense
from .messages import (
    CommandError,
    Context,
    ErrorKind,
    format_money,
    is_lang_available,
    round_money,
    translate,
)
from .store import Store, connect
from .transfers import delete_transfer, list_transfers, transfer
from .travelers import add_traveler, delete_traveler, list_travelers

logger = logging.getLogger(__name__)

PROMPT_DESCRIPTION = "Enter the description of the expense."
PROMPT_AMOUNT = "Enter the amount of the expense."
PROMPT_PAYER = "Who paid for the expense?"
PROMPT_SPLIT = (
    'How is the expense split? Send entries such as "Alice: 30; Bob: 20%; Charlie", '
    f'"{m.ALL_KWORD}" to split evenly, or "{m.END_KWORD}" when done.'
)
ERR_INVALID_AMOUNT = "Invalid amount: {amount}. Enter a positive number."
ERR_PAYER_NOT_FOUND = "Traveler {name} not found. Who paid for the expense?"
ERR_SPLIT_ENTRY = "Invalid split entry: {entry}."
ERR_SPLIT_TRAVELER = "Traveler {name} not found."
ERR_SPLIT_EXCEEDS = "The shares exceed the amount of the expense ({amount})."
ERR_SPLIT_INCOMPLETE = "The shares do not cover the amount of the expense: {remaining} left."
SPLIT_REMAINING = (
    f'Remaining to split: {{remaining}}. Send more entries, "{m.ALL_KWORD}" or "{m.END_KWORD}".'
)

_ENTRY_RE = re.compile(
    r"^\s*(?P<name>[^;:]+?)\s*"
    r"(?::\s*(?:(?P<percentage>\d+(?:\.\d+)?)\s*%|(?P<amount>\d+(?:\.\d+)?))\s*)?$"
)


class _Step(enum.Enum):
    DESCRIPTION = enum.auto()
    AMOUNT = enum.auto()
    PAYER = enum.auto()
    SPLIT = enum.auto()


@dataclass
class _ExpenseDraft:
    step: _Step = _Step.DESCRIPTION
    description: str = ""
    amount: Decimal = Decimal(0)
    payer: str = ""
    shares: dict[str, Decimal] = field(default_factory=dict)

    @property
    def remaining(self) -> Decimal:
        return self.amount - sum(self.shares.values(), Decimal(0))


class TravelBot:
    """Answers chat messages for any number of chats sharing one store."""

    def __init__(self, store: Store, bot_name: str | None = None):
        self.store = store
        self.bot_name = bot_name
        self._drafts: dict[int, _ExpenseDraft] = {}

    def context(self, chat_id: int) -> Context:
        """The language and currency currently set for the chat."""
        return self.store.chat_settings(chat_id)

    def handle(self, chat_id: int, text: str) -> str | None:
        """Reply to one message, or None when the message needs no reply."""
        ctx = self.context(chat_id)
        if text.startswith("/"):
            try:
                command = parse_command(text, self.bot_name)
            except ValueError:
                return unknown_command(text, ctx, self.bot_name)
            if command.kind is CommandKind.CANCEL:
                return self.cancel(chat_id)
            if command.kind is CommandKind.ADD_EXPENSE:
                self._drafts[chat_id] = _ExpenseDraft()
                return PROMPT_DESCRIPTION
            return self.command_reply(chat_id, command)
        draft = self._drafts.get(chat_id)
        if draft is None:
            return None
        return self._advance(chat_id, draft, text, ctx)

    def command_reply(self, chat_id: int, command: Command) -> str:
        """Run a command; a failure is replied with its error and the command's help."""
        ctx = self.context(chat_id)
        kind = command.kind
        try:
            match kind:
                case CommandKind.HELP:
                    return help(command.argument, ctx)
                case CommandKind.SET_LANGUAGE:
                    return self.set_language(chat_id, command.argument)
                case CommandKind.SET_CURRENCY:
                    return self.set_currency(chat_id, command.argument)
                case CommandKind.ADD_TRAVELER:
                    return add_traveler(self.store, chat_id, command.argument, ctx)
                case CommandKind.DELETE_TRAVELER:
                    return delete_traveler(self.store, chat_id, command.argument, ctx)
                case CommandKind.LIST_TRAVELERS:
                    return list_travelers(self.store, chat_id, ctx)
                case CommandKind.DELETE_EXPENSE:
                    return delete_expense(self.store, chat_id, command.number, ctx)
                case CommandKind.LIST_EXPENSES:
                    return list_expenses(self.store, chat_id, command.argument, ctx)
                case CommandKind.SHOW_EXPENSE:
                    return show_expense(self.store, chat_id, command.number, ctx)
                case CommandKind.TRANSFER:
                    return transfer(
                        self.store,
                        chat_id,
                        command.sender,
                        command.receiver,
                        command.amount,
                        ctx,
                    )
                case CommandKind.DELETE_TRANSFER:
                    return delete_transfer(self.store, chat_id, command.number, ctx)
                case CommandKind.LIST_TRANSFERS:
                    return list_transfers(self.store, chat_id, command.argument, ctx)
                case CommandKind.SHOW_BALANCES:
                    return show_balances(self.store, chat_id, command.argument, ctx)
                case _:
                    raise ValueError(f"/{kind.value} is handled by the dialogue")
        except CommandError as err:
            return f"{err.translate(ctx)}\n\n{help_message(kind, ctx)}"

    def cancel(self, chat_id: int) -> str:
        """Abort the chat's running dialogue, if there is one."""
        ctx = self.context(chat_id)
        if self._drafts.pop(chat_id, None) is not None:
            return translate(ctx, m.CANCEL_OK)
        return translate(ctx, m.CANCEL_NO_PROCESS_TO_CANCEL)

    def set_currency(self, chat_id: int, currency: str) -> str:
        """Set the chat currency; raises CommandError if the store fails."""
        try:
            self.store.set_currency(chat_id, currency)
        except sqlite3.Error as err:
            logger.error("%s", err)
            raise CommandError(ErrorKind.SET_CURRENCY, currency=currency) from err
        return translate(self.context(chat_id), m.SET_CURRENCY_OK, {"currency": currency})

    def set_language(self, chat_id: int, langid: str) -> str:
        """Set the chat language if a catalog exists for it."""
        if not is_lang_available(langid):
            return translate(
                self.context(chat_id), m.SET_LANGUAGE_NOT_AVAILABLE, {"langid": langid}
            )
        try:
            self.store.set_language(chat_id, langid)
        except sqlite3.Error as err:
            logger.error("%s", err)
            raise CommandError(ErrorKind.SET_LANGUAGE, langid=langid) from err
        return translate(self.context(chat_id), m.SET_LANGUAGE_OK, {"langid": langid})

    # -- add-expense dialogue ---------------------------------------------

    def _advance(self, chat_id: int, draft: _ExpenseDraft, text: str, ctx: Context) -> str:
        text = text.strip()
        match draft.step:
            case _Step.DESCRIPTION:
                if not text:
                    return PROMPT_DESCRIPTION
                draft.description = text
                draft.step = _Step.AMOUNT
                return PROMPT_AMOUNT
            case _Step.AMOUNT:
                try:
                    amount = Decimal(text)
                except InvalidOperation:
                    return ERR_INVALID_AMOUNT.format(amount=text)
                if not amount.is_finite() or amount <= 0:
                    return ERR_INVALID_AMOUNT.format(amount=text)
                draft.amount = amount
                draft.step = _Step.PAYER
                return PROMPT_PAYER
            case _Step.PAYER:
                if self.store.get_traveler(chat_id, text) is None:
                    return ERR_PAYER_NOT_FOUND.format(name=text)
                draft.payer = text
                draft.step = _Step.SPLIT
                return PROMPT_SPLIT
            case _Step.SPLIT:
                return self._split(chat_id, draft, text, ctx)
        raise AssertionError(draft.step)

    def _split(self, chat_id: int, draft: _ExpenseDraft, text: str, ctx: Context) -> str:
        keyword = text.lower()
        if keyword == m.ALL_KWORD:
            names = [t.name for t in self.store.list_travelers(chat_id)]
            others = [name for name in names if name not in draft.shares] or names
            share = draft.remaining / len(others)
            for name in others:
                draft.shares[name] = draft.shares.get(name, Decimal(0)) + share
            return self._finish(chat_id, draft, ctx)
        if keyword == m.END_KWORD:
            remaining = round_money(draft.remaining, ctx.currency)
            if not draft.shares or remaining != 0:
                return ERR_SPLIT_INCOMPLETE.format(
                    remaining=format_money(draft.remaining, ctx.currency)
                )
            return self._finish(chat_id, draft, ctx)

        shares = dict(draft.shares)
        bare: list[str] = []
        for entry in filter(str.strip, text.split(m.SPLIT_AMONG_ENTRIES_SEP)):
            match = _ENTRY_RE.match(entry)
            if match is None:
                return ERR_SPLIT_ENTRY.format(entry=entry.strip())
            name = match["name"]
            if self.store.get_traveler(chat_id, name) is None:
                return ERR_SPLIT_TRAVELER.format(name=name)
            if match["percentage"] is not None:
                shares[name] = draft.amount * Decimal(match["percentage"]) / 100
            elif match["amount"] is not None:
                shares[name] = Decimal(match["amount"])
            else:
                shares.pop(name, None)
                bare.append(name)
        remaining = draft.amount - sum(shares.values(), Decimal(0))
        if round_money(remaining, ctx.currency) < 0:
            return ERR_SPLIT_EXCEEDS.format(amount=format_money(draft.amount, ctx.currency))
        if bare:
            share = remaining / len(bare)
            shares.update((name, share) for name in bare)
        draft.shares = shares
        return SPLIT_REMAINING.format(remaining=format_money(draft.remaining, ctx.currency))

    def _finish(self, chat_id: int, draft: _ExpenseDraft, ctx: Context) -> str:
        expense = self.store.add_expense(
            chat_id, draft.description, draft.amount, draft.payer, draft.shares
        )
        del self._drafts[chat_id]
        return format_expense(expense, ctx)


def main(argv: list[str] | None = None) -> int:
    """Answer messages read from standard input, one per line, for one chat."""
    parser = argparse.ArgumentParser(
        prog="travelsplit", description="Split the expenses of a shared trip."
    )
    parser.add_argument("--database", default="memory", help="database file, or 'memory'")
    parser.add_argument("--chat-id", type=int, default=0, help="chat to act on")
    parser.add_argument("--bot-name", default=None, help="username of the bot")
    args = parser.parse_args(argv)

    with connect(args.database) as store:
        bot = TravelBot(store, args.bot_name)
        for line in sys.stdin:
            text = line.rstrip("\n")
            if not text.strip():
                continue
            reply = bot.handle(args.chat_id, text)
            if reply is not None:
                print(reply, flush=True)
    return 0