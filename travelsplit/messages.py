"""Constants, per-chat context, message catalog, money formatting and errors."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal

DECIMAL_SEP = "."
SPLIT_AMONG_ENTRIES_SEP = ";"
SPLIT_AMONG_NAME_AMOUNT_SEP = ":"

ALL_KWORD = "all"
END_KWORD = "end"
RESERVED_KWORDS = (ALL_KWORD, END_KWORD)
INVALID_CHARS = (SPLIT_AMONG_ENTRIES_SEP, SPLIT_AMONG_NAME_AMOUNT_SEP, ",")

MIN_SIMILARITY_SCORE = 0.25

DEFAULT_LANG = "en-US"
DEFAULT_CURRENCY = "EUR"

# Message keys.
COMMAND_DESCRIPTIONS = "command-descriptions"
ADD_TRAVELER_OK = "add-traveler-ok"
ADD_TRAVELER_ALREADY_ADDED = "add-traveler-already-added"
CANCEL_OK = "cancel-ok"
CANCEL_NO_PROCESS_TO_CANCEL = "cancel-no-process-to-cancel"
DELETE_EXPENSE_OK = "delete-expense-ok"
DELETE_EXPENSE_NOT_FOUND = "delete-expense-not-found"
DELETE_TRANSFER_OK = "delete-transfer-ok"
DELETE_TRANSFER_NOT_FOUND = "delete-transfer-not-found"
DELETE_TRAVELER_OK = "delete-traveler-ok"
DELETE_TRAVELER_NOT_FOUND = "delete-traveler-not-found"
DELETE_TRAVELER_HAS_EXPENSES = "delete-traveler-has-expenses"
LIST_EXPENSES_NOT_FOUND = "list-expenses-not-found"
LIST_EXPENSES_DESCR_NOT_FOUND = "list-expenses-descr-not-found"
LIST_TRANSFERS_NOT_FOUND = "list-transfers-not-found"
LIST_TRANSFERS_NAME_NOT_FOUND = "list-transfers-name-not-found"
LIST_TRAVELERS_NOT_FOUND = "list-travelers-not-found"
SET_CURRENCY_OK = "set-currency-ok"
SET_LANGUAGE_OK = "set-language-ok"
SET_LANGUAGE_NOT_AVAILABLE = "set-language-not-available"
SHOW_BALANCES_OK = "show-balances-ok"
SHOW_BALANCES_SETTLED_UP = "show-balances-settled-up"
SHOW_BALANCES_TRAVELER_OK = "show-balances-traveler-ok"
SHOW_BALANCES_TRAVELER_SETTLED_UP = "show-balances-traveler-settled-up"
SHOW_BALANCES_TRAVELER_NOT_FOUND = "show-balances-traveler-not-found"
SHOW_EXPENSE_NOT_FOUND = "show-expense-not-found"
TRANSFER_OK = "transfer-ok"
TRANSFER_SENDER_NOT_FOUND = "transfer-sender-not-found"
TRANSFER_RECEIVER_NOT_FOUND = "transfer-receiver-not-found"
INVALID_COMMAND_USAGE = "invalid-command-usage"
UNKNOWN_COMMAND = "unknown-command"
UNKNOWN_COMMAND_BEST_MATCH = "unknown-command-best-match"
EXPENSE = "expense"
EXPENSE_DETAILS = "expense-details"
EXPENSE_SHARE = "expense-share"
TRANSFER = "transfer"
TRAVELER_IS_CASE_DEBTOR = "debtor"
TRAVELER_IS_CASE_CREDITOR = "creditor"

HELP_HELP = "help-help"
HELP_SET_LANGUAGE = "help-set-language"
HELP_SET_CURRENCY = "help-set-currency"
HELP_ADD_TRAVELER = "help-add-traveler"
HELP_DELETE_TRAVELER = "help-delete-traveler"
HELP_LIST_TRAVELERS = "help-list-travelers"
HELP_ADD_EXPENSE = "help-add-expense"
HELP_DELETE_EXPENSE = "help-delete-expense"
HELP_LIST_EXPENSES = "help-list-expenses"
HELP_SHOW_EXPENSE = "help-show-expense"
HELP_TRANSFER = "help-transfer"
HELP_DELETE_TRANSFER = "help-delete-transfer"
HELP_LIST_TRANSFERS = "help-list-transfers"
HELP_SHOW_BALANCES = "help-show-balances"
HELP_CANCEL = "help-cancel"

ERR_EMPTY_INPUT = "err-empty-input"
ERR_HELP = "err-help"
ERR_HELP_BEST_MATCH = "err-help-best-match"
ERR_ADD_TRAVELER = "err-add-traveler"
ERR_DELETE_TRAVELER = "err-delete-traveler"
ERR_LIST_TRAVELERS = "err-list-travelers"
ERR_DELETE_EXPENSE = "err-delete-expense"
ERR_LIST_EXPENSES = "err-list-expenses"
ERR_SHOW_EXPENSE = "err-show-expense"
ERR_TRANSFER = "err-transfer"
ERR_DELETE_TRANSFER = "err-delete-transfer"
ERR_LIST_TRANSFERS = "err-list-transfers"
ERR_SHOW_BALANCES = "err-show-balances"
ERR_SET_CURRENCY = "err-set-currency"
ERR_SET_LANGUAGE = "err-set-language"

_EN = {
    COMMAND_DESCRIPTIONS: (
        "These commands are supported:\n"
        "/help — Show help for all commands or a specific one\n"
        "/setlanguage — Set the chat language\n"
        "/setcurrency — Set the chat currency\n"
        "/addtraveler — Add a traveler\n"
        "/deletetraveler — Delete a traveler\n"
        "/listtravelers — List the travelers\n"
        "/addexpense — Add an expense\n"
        "/deleteexpense — Delete an expense\n"
        "/listexpenses — List the expenses\n"
        "/showexpense — Show the details of an expense\n"
        "/transfer — Record a money transfer\n"
        "/deletetransfer — Delete a transfer\n"
        "/listtransfers — List the transfers\n"
        "/showbalances — Show the balances\n"
        "/cancel — Cancel the current process"
    ),
    ADD_TRAVELER_OK: "Traveler {name} added.",
    ADD_TRAVELER_ALREADY_ADDED: "Traveler {name} has already been added.",
    CANCEL_OK: "Process cancelled.",
    CANCEL_NO_PROCESS_TO_CANCEL: "There is no process to cancel.",
    DELETE_EXPENSE_OK: "Expense #{number} deleted.",
    DELETE_EXPENSE_NOT_FOUND: "Expense #{number} not found.",
    DELETE_TRANSFER_OK: "Transfer #{number} deleted.",
    DELETE_TRANSFER_NOT_FOUND: "Transfer #{number} not found.",
    DELETE_TRAVELER_OK: "Traveler {name} deleted.",
    DELETE_TRAVELER_NOT_FOUND: "Traveler {name} not found.",
    DELETE_TRAVELER_HAS_EXPENSES: (
        "Traveler {name} cannot be deleted because they paid for these expenses:\n{expenses}"
    ),
    LIST_EXPENSES_NOT_FOUND: "No expenses found.",
    LIST_EXPENSES_DESCR_NOT_FOUND: 'No expenses found matching "{description}".',
    LIST_TRANSFERS_NOT_FOUND: "No transfers found.",
    LIST_TRANSFERS_NAME_NOT_FOUND: "No transfers found for {name}.",
    LIST_TRAVELERS_NOT_FOUND: "No travelers found.",
    SET_CURRENCY_OK: "Currency set to {currency}.",
    SET_LANGUAGE_OK: "Language set to {langid}.",
    SET_LANGUAGE_NOT_AVAILABLE: "Language {langid} is not available.",
    SHOW_BALANCES_OK: "{debtor} owes {debt} to {creditor}",
    SHOW_BALANCES_SETTLED_UP: "Everyone is settled up!",
    SHOW_BALANCES_TRAVELER_OK: (
        "{traveler_name} {traveler_is} {debt} {other_traveler_name}"
    ),
    SHOW_BALANCES_TRAVELER_SETTLED_UP: "{name} is settled up!",
    SHOW_BALANCES_TRAVELER_NOT_FOUND: "Traveler {name} not found.",
    SHOW_EXPENSE_NOT_FOUND: "Expense #{number} not found.",
    TRANSFER_OK: "Transfer recorded.",
    TRANSFER_SENDER_NOT_FOUND: "Sender {name} not found.",
    TRANSFER_RECEIVER_NOT_FOUND: "Receiver {name} not found.",
    INVALID_COMMAND_USAGE: "Invalid usage of {command}.\n\n{help_message}",
    UNKNOWN_COMMAND: "Unknown command: {command}",
    UNKNOWN_COMMAND_BEST_MATCH: "Unknown command: {command}. Did you mean {best_match}?",
    EXPENSE: "#{number} {description}: {amount}",
    EXPENSE_DETAILS: (
        "Expense #{number}\nDescription: {description}\nAmount: {amount}\n"
        "Paid by: {payer}\nSplit:\n{shares}"
    ),
    EXPENSE_SHARE: "- {name}: {amount}",
    TRANSFER: "#{number} {sender} → {receiver}: {amount}",
    TRAVELER_IS_CASE_DEBTOR: "owes",
    TRAVELER_IS_CASE_CREDITOR: "is owed",
    HELP_HELP: "/help [command] — Show all commands, or the help of one command.",
    HELP_SET_LANGUAGE: "/setlanguage <language> — Set the chat language. Available:\n{available_langs}",
    HELP_SET_CURRENCY: "/setcurrency <currency> — Set the chat currency, e.g. EUR.",
    HELP_ADD_TRAVELER: "/addtraveler <name> — Add a traveler to the chat.",
    HELP_DELETE_TRAVELER: "/deletetraveler <name> — Delete a traveler from the chat.",
    HELP_LIST_TRAVELERS: "/listtravelers — List the travelers of the chat.",
    HELP_ADD_EXPENSE: "/addexpense — Start recording a new expense.",
    HELP_DELETE_EXPENSE: "/deleteexpense <number> — Delete an expense.",
    HELP_LIST_EXPENSES: "/listexpenses [description] — List expenses, optionally filtered.",
    HELP_SHOW_EXPENSE: "/showexpense <number> — Show the details of an expense.",
    HELP_TRANSFER: "/transfer <sender> <receiver> <amount> — Record a money transfer.",
    HELP_DELETE_TRANSFER: "/deletetransfer <number> — Delete a transfer.",
    HELP_LIST_TRANSFERS: "/listtransfers [name] — List transfers, optionally of one traveler.",
    HELP_SHOW_BALANCES: "/showbalances [name] — Show balances, optionally of one traveler.",
    HELP_CANCEL: "/cancel — Cancel the current process.",
    ERR_EMPTY_INPUT: "The input is empty.",
    ERR_HELP: "Unknown command: {command}.",
    ERR_HELP_BEST_MATCH: "Unknown command: {command}. Did you mean {best_match}?",
    ERR_ADD_TRAVELER: "Unable to add traveler {name}.",
    ERR_DELETE_TRAVELER: "Unable to delete traveler {name}.",
    ERR_LIST_TRAVELERS: "Unable to list the travelers.",
    ERR_DELETE_EXPENSE: "Unable to delete expense #{number}.",
    ERR_LIST_EXPENSES: "Unable to list the expenses.",
    ERR_SHOW_EXPENSE: "Unable to show expense #{number}.",
    ERR_TRANSFER: "Unable to record the transfer of {amount} from {sender} to {receiver}.",
    ERR_DELETE_TRANSFER: "Unable to delete transfer #{number}.",
    ERR_LIST_TRANSFERS: "Unable to list the transfers.",
    ERR_SHOW_BALANCES: "Unable to show the balances.",
    ERR_SET_CURRENCY: "Unable to set currency {currency}.",
    ERR_SET_LANGUAGE: "Unable to set language {langid}.",
}

_IT = {
    ADD_TRAVELER_OK: "Viaggiatore {name} aggiunto.",
    ADD_TRAVELER_ALREADY_ADDED: "Il viaggiatore {name} è già stato aggiunto.",
    CANCEL_OK: "Processo annullato.",
    CANCEL_NO_PROCESS_TO_CANCEL: "Non c'è nessun processo da annullare.",
    DELETE_EXPENSE_OK: "Spesa #{number} eliminata.",
    DELETE_EXPENSE_NOT_FOUND: "Spesa #{number} non trovata.",
    DELETE_TRANSFER_OK: "Trasferimento #{number} eliminato.",
    DELETE_TRANSFER_NOT_FOUND: "Trasferimento #{number} non trovato.",
    DELETE_TRAVELER_OK: "Viaggiatore {name} eliminato.",
    DELETE_TRAVELER_NOT_FOUND: "Viaggiatore {name} non trovato.",
    LIST_EXPENSES_NOT_FOUND: "Nessuna spesa trovata.",
    LIST_TRANSFERS_NOT_FOUND: "Nessun trasferimento trovato.",
    LIST_TRAVELERS_NOT_FOUND: "Nessun viaggiatore trovato.",
    SET_CURRENCY_OK: "Valuta impostata a {currency}.",
    SET_LANGUAGE_OK: "Lingua impostata a {langid}.",
    SET_LANGUAGE_NOT_AVAILABLE: "La lingua {langid} non è disponibile.",
    SHOW_BALANCES_OK: "{debtor} deve {debt} a {creditor}",
    SHOW_BALANCES_SETTLED_UP: "Tutti i conti sono saldati!",
    TRANSFER_OK: "Trasferimento registrato.",
    EXPENSE: "#{number} {description}: {amount}",
    TRAVELER_IS_CASE_DEBTOR: "deve",
    TRAVELER_IS_CASE_CREDITOR: "deve ricevere",
    ERR_EMPTY_INPUT: "L'input è vuoto.",
}

_CATALOG = {"en-US": _EN, "it-IT": _IT}

_LANGID_RE = re.compile(r"^[A-Za-z]{2,3}(-[A-Za-z0-9]{2,8})*$")


@dataclass
class Context:
    """Per-chat language and currency."""

    langid: str = DEFAULT_LANG
    currency: str = DEFAULT_CURRENCY


class _Missing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def translate(ctx: Context | None, key: str, args: dict | None = None) -> str:
    """Render message ``key`` in the context's language, falling back to English."""
    langid = ctx.langid if ctx is not None else DEFAULT_LANG
    template = _CATALOG.get(langid, {}).get(key) or _EN.get(key)
    if template is None:
        return key
    values = _Missing({k: str(v) for k, v in (args or {}).items()})
    return template.format_map(values)


def available_langs() -> list[str]:
    """Languages that have a catalog."""
    return list(_CATALOG)


def is_lang_available(langid: str) -> bool:
    return str(langid) in _CATALOG


def normalize_langid(text: str) -> str:
    """Validate and canonicalise a language identifier such as ``it-it``."""
    text = text.strip().replace("_", "-")
    if not _LANGID_RE.match(text):
        raise ValueError(f"invalid language identifier: {text!r}")
    lang, *rest = text.split("-")
    parts = [lang.lower()]
    for part in rest:
        parts.append(part.upper() if len(part) == 2 else part)
    return "-".join(parts)


class ErrorKind(enum.Enum):
    EMPTY_INPUT = ERR_EMPTY_INPUT
    HELP = ERR_HELP
    ADD_TRAVELER = ERR_ADD_TRAVELER
    DELETE_TRAVELER = ERR_DELETE_TRAVELER
    LIST_TRAVELERS = ERR_LIST_TRAVELERS
    DELETE_EXPENSE = ERR_DELETE_EXPENSE
    LIST_EXPENSES = ERR_LIST_EXPENSES
    SHOW_EXPENSE = ERR_SHOW_EXPENSE
    TRANSFER = ERR_TRANSFER
    DELETE_TRANSFER = ERR_DELETE_TRANSFER
    LIST_TRANSFERS = ERR_LIST_TRANSFERS
    SHOW_BALANCES = ERR_SHOW_BALANCES
    SET_CURRENCY = ERR_SET_CURRENCY
    SET_LANGUAGE = ERR_SET_LANGUAGE


class CommandError(Exception):
    """A command failed; ``fields`` carry the message arguments."""

    def __init__(self, kind: ErrorKind, **fields):
        self.kind = kind
        self.fields = fields
        super().__init__(self.translate(None))

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, CommandError)
            and self.kind == other.kind
            and self.fields == other.fields
        )

    __hash__ = Exception.__hash__

    def translate(self, ctx: Context | None) -> str:
        key = self.kind.value
        if self.kind is ErrorKind.HELP and self.fields.get("best_match"):
            args = dict(self.fields, best_match="/" + self.fields["best_match"])
            return translate(ctx, ERR_HELP_BEST_MATCH, args)
        return translate(ctx, key, self.fields)


_CURRENCIES = {
    "EUR": ("€", 2),
    "USD": ("$", 2),
    "GBP": ("£", 2),
    "CHF": ("CHF ", 2),
    "JPY": ("¥", 0),
    "BTC": ("₿", 8),
    "ETH": ("Ξ", 18),
}


def _exponent(currency: str) -> int:
    return _CURRENCIES.get(currency.upper(), ("", 2))[1]


def round_money(amount: Decimal, currency: str) -> Decimal:
    """Round ``amount`` to the minor unit of ``currency`` (banker's rounding)."""
    quantum = Decimal(1).scaleb(-_exponent(currency))
    return Decimal(amount).quantize(quantum, rounding=ROUND_HALF_EVEN)


def format_money(amount: Decimal, currency: str) -> str:
    """Format ``amount`` with the currency's symbol, or its code if unknown."""
    value = round_money(amount, currency)
    entry = _CURRENCIES.get(currency.upper())
    if entry is None:
        return f"{value} {currency}"
    symbol = entry[0]
    if value < 0:
        return f"-{symbol}{-value}"
    return f"{symbol}{value}"


def validate_name(text: str) -> str:
    """Return the trimmed traveler name, or raise ValueError if it is not allowed."""
    name = text.strip()
    if any(ch in name for ch in INVALID_CHARS):
        raise ValueError(f"name {name!r} contains an invalid character")
    if name.lower() in RESERVED_KWORDS:
        raise ValueError(f"name {name!r} is a reserved keyword")
    return name