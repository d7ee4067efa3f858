"""Replies to the traveler commands: add, delete and list."""

from __future__ import annotations

import logging
import sqlite3

from . import messages as m
from .expenses import format_expense
from .messages import CommandError, Context, ErrorKind, translate
from .store import Store

logger = logging.getLogger(__name__)


def add_traveler(store: Store, chat_id: int, name: str, ctx: Context | None) -> str:
    """Add traveler ``name`` to the chat.

    Raises CommandError for an empty name or when the store fails.
    """
    if not name:
        raise CommandError(ErrorKind.EMPTY_INPUT)
    args = {"name": name}
    try:
        if store.count_travelers(chat_id, name) > 0:
            logger.warning(translate(None, m.ADD_TRAVELER_ALREADY_ADDED, args))
            return translate(ctx, m.ADD_TRAVELER_ALREADY_ADDED, args)
        store.add_traveler(chat_id, name)
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise CommandError(ErrorKind.ADD_TRAVELER, name=name) from err
    return translate(ctx, m.ADD_TRAVELER_OK, args)


def delete_traveler(store: Store, chat_id: int, name: str, ctx: Context | None) -> str:
    """Delete traveler ``name`` unless they paid for some expense.

    Raises CommandError for an empty name or when the store fails.
    """
    if not name:
        raise CommandError(ErrorKind.EMPTY_INPUT)
    args = {"name": name}
    try:
        traveler = store.get_traveler(chat_id, name)
        if traveler is None:
            logger.warning(translate(None, m.DELETE_TRAVELER_NOT_FOUND, args))
            return translate(ctx, m.DELETE_TRAVELER_NOT_FOUND, args)
        expenses = store.expenses_by_payer(chat_id, traveler.name)
        if expenses:
            logger.warning(
                "Unable to delete traveler '%s' because they have associated expenses.",
                name,
            )
            listing = "\n".join(format_expense(expense, ctx) for expense in expenses)
            return translate(
                ctx, m.DELETE_TRAVELER_HAS_EXPENSES, {"name": name, "expenses": listing}
            )
        store.delete_traveler(chat_id, name)
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise CommandError(ErrorKind.DELETE_TRAVELER, name=name) from err
    return translate(ctx, m.DELETE_TRAVELER_OK, args)


def list_travelers(store: Store, chat_id: int, ctx: Context | None) -> str:
    """The names of the chat's travelers, one per line."""
    try:
        travelers = store.list_travelers(chat_id)
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise CommandError(ErrorKind.LIST_TRAVELERS) from err
    if not travelers:
        return translate(ctx, m.LIST_TRAVELERS_NOT_FOUND)
    return "\n".join(traveler.name for traveler in travelers)