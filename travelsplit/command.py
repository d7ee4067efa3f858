"""Command names, parsing, fuzzy matching and help replies."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from . import messages as m
from .messages import CommandError, Context, ErrorKind, translate


class CommandKind(enum.Enum):
    HELP = "help"
    SET_LANGUAGE = "setlanguage"
    SET_CURRENCY = "setcurrency"
    ADD_TRAVELER = "addtraveler"
    DELETE_TRAVELER = "deletetraveler"
    LIST_TRAVELERS = "listtravelers"
    ADD_EXPENSE = "addexpense"
    DELETE_EXPENSE = "deleteexpense"
    LIST_EXPENSES = "listexpenses"
    SHOW_EXPENSE = "showexpense"
    TRANSFER = "transfer"
    DELETE_TRANSFER = "deletetransfer"
    LIST_TRANSFERS = "listtransfers"
    SHOW_BALANCES = "showbalances"
    CANCEL = "cancel"


_HELP_KEYS = {
    CommandKind.HELP: m.HELP_HELP,
    CommandKind.SET_LANGUAGE: m.HELP_SET_LANGUAGE,
    CommandKind.SET_CURRENCY: m.HELP_SET_CURRENCY,
    CommandKind.ADD_TRAVELER: m.HELP_ADD_TRAVELER,
    CommandKind.DELETE_TRAVELER: m.HELP_DELETE_TRAVELER,
    CommandKind.LIST_TRAVELERS: m.HELP_LIST_TRAVELERS,
    CommandKind.ADD_EXPENSE: m.HELP_ADD_EXPENSE,
    CommandKind.DELETE_EXPENSE: m.HELP_DELETE_EXPENSE,
    CommandKind.LIST_EXPENSES: m.HELP_LIST_EXPENSES,
    CommandKind.SHOW_EXPENSE: m.HELP_SHOW_EXPENSE,
    CommandKind.TRANSFER: m.HELP_TRANSFER,
    CommandKind.DELETE_TRANSFER: m.HELP_DELETE_TRANSFER,
    CommandKind.LIST_TRANSFERS: m.HELP_LIST_TRANSFERS,
    CommandKind.SHOW_BALANCES: m.HELP_SHOW_BALANCES,
    CommandKind.CANCEL: m.HELP_CANCEL,
}

_NAME_ARG = {
    CommandKind.ADD_TRAVELER,
    CommandKind.DELETE_TRAVELER,
    CommandKind.LIST_TRANSFERS,
    CommandKind.SHOW_BALANCES,
}
_NUMBER_ARG = {
    CommandKind.DELETE_EXPENSE,
    CommandKind.SHOW_EXPENSE,
    CommandKind.DELETE_TRANSFER,
}
_NO_ARG = {CommandKind.LIST_TRAVELERS, CommandKind.ADD_EXPENSE, CommandKind.CANCEL}


@dataclass(frozen=True)
class Command:
    """A parsed bot command and its arguments."""

    kind: CommandKind
    argument: str = ""
    number: int = 0
    sender: str = ""
    receiver: str = ""
    amount: Decimal = Decimal(0)


class ParseOutcome(enum.Enum):
    VALID_COMMAND_NAME = "valid"
    BEST_MATCH = "best_match"
    UNKNOWN_COMMAND = "unknown"


@dataclass(frozen=True)
class ParseResult:
    outcome: ParseOutcome
    kind: CommandKind | None = None


def _trigrams(text: str) -> list[str]:
    padded = f"  {text.lower()} "
    return [padded[i : i + 3] for i in range(len(padded) - 2)]


def similarity(a: str, b: str) -> float:
    """Trigram similarity of two strings, between 0 and 1."""
    ta, tb = _trigrams(a), _trigrams(b)
    tb_set = set(tb)
    shared = sum(1 for t in ta if t in tb_set)
    denominator = len(ta) + len(tb) - shared
    return shared / denominator if denominator > 0 else 0.0


def parse_cmd_name(cmd_name: str) -> ParseResult:
    """Classify a command name as valid, close to a known one, or unknown."""
    names = [kind.value for kind in CommandKind]
    if cmd_name in names:
        return ParseResult(ParseOutcome.VALID_COMMAND_NAME, CommandKind(cmd_name))
    lowered = cmd_name.lower()
    if lowered in names:
        return ParseResult(ParseOutcome.BEST_MATCH, CommandKind(lowered))
    best = max(names, key=lambda name: similarity(cmd_name, name))
    if similarity(cmd_name, best) >= m.MIN_SIMILARITY_SCORE:
        return ParseResult(ParseOutcome.BEST_MATCH, CommandKind(best))
    return ParseResult(ParseOutcome.UNKNOWN_COMMAND)


def parse_command(text: str, bot_name: str | None = None) -> Command | None:
    """Parse a message into a Command.

    Returns None if the text is not a command; raises ValueError when the
    command name is unknown or its arguments are malformed.
    """
    if not text.startswith("/"):
        return None
    head, _, args = text[1:].partition(" ")
    if bot_name and head.endswith(f"@{bot_name}"):
        head = head[: -len(bot_name) - 1]
    try:
        kind = CommandKind(head.lower())
    except ValueError:
        raise ValueError(f"unknown command: /{head}") from None

    if kind in _NO_ARG:
        return Command(kind)
    if kind in _NAME_ARG:
        return Command(kind, argument=m.validate_name(args))
    if kind in _NUMBER_ARG:
        try:
            return Command(kind, number=int(args.strip()))
        except ValueError:
            raise ValueError(f"/{kind.value} expects a number") from None
    if kind is CommandKind.SET_LANGUAGE:
        return Command(kind, argument=m.normalize_langid(args))
    if kind is CommandKind.TRANSFER:
        parts = args.split(" ")
        if len(parts) != 3:
            raise ValueError("/transfer expects a sender, a receiver and an amount")
        try:
            amount = Decimal(parts[2])
        except InvalidOperation:
            raise ValueError(f"invalid amount: {parts[2]!r}") from None
        return Command(
            kind,
            sender=m.validate_name(parts[0]),
            receiver=m.validate_name(parts[1]),
            amount=amount,
        )
    # help, setcurrency, listexpenses take the raw text
    return Command(kind, argument=args.strip())


def help_message(kind: CommandKind, ctx: Context | None) -> str:
    """The help text of one command."""
    if kind is CommandKind.SET_LANGUAGE:
        langs = "\n".join(f"- {lang}" for lang in m.available_langs())
        return translate(ctx, m.HELP_SET_LANGUAGE, {"available_langs": langs})
    return translate(ctx, _HELP_KEYS[kind])


def help(command: str, ctx: Context | None) -> str:
    """Reply to /help; raises CommandError for an unknown command."""
    command = command.strip()
    if not command:
        return translate(ctx, m.COMMAND_DESCRIPTIONS)
    cmd_name = command.removeprefix("/").lower()
    result = parse_cmd_name(cmd_name)
    if result.outcome is ParseOutcome.VALID_COMMAND_NAME:
        return help_message(result.kind, ctx)
    best = result.kind.value if result.outcome is ParseOutcome.BEST_MATCH else None
    raise CommandError(ErrorKind.HELP, command=command, best_match=best)


def unknown_command(text: str, ctx: Context | None, bot_name: str | None = None) -> str | None:
    """Reply to a command that could not be parsed, or None if it is not a command."""
    words = text.split()
    first = words[0] if words else ""
    if not first.startswith("/"):
        return None
    cmd_name = first[1:]
    if bot_name:
        cmd_name = cmd_name.removesuffix(f"@{bot_name}")
    result = parse_cmd_name(cmd_name)
    if result.outcome is ParseOutcome.VALID_COMMAND_NAME:
        return translate(
            ctx,
            m.INVALID_COMMAND_USAGE,
            {"command": f"/{cmd_name}", "help_message": help_message(result.kind, ctx)},
        )
    if result.outcome is ParseOutcome.BEST_MATCH:
        return translate(
            ctx,
            m.UNKNOWN_COMMAND_BEST_MATCH,
            {"command": text, "best_match": f"/{result.kind.value}"},
        )
    return translate(ctx, m.UNKNOWN_COMMAND, {"command": text})