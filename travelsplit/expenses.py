"""Replies to the expense commands: delete, list and show."""

from __future__ import annotations

import logging
import sqlite3

from . import messages as m
from .messages import CommandError, Context, ErrorKind, format_money, translate
from .store import Expense, ExpenseDetails, Store

logger = logging.getLogger(__name__)


def _currency(ctx: Context | None) -> str:
    return ctx.currency if ctx is not None else m.DEFAULT_CURRENCY


def format_expense(expense: Expense, ctx: Context | None) -> str:
    """One line describing an expense."""
    return translate(
        ctx,
        m.EXPENSE,
        {
            "number": expense.number,
            "description": expense.description,
            "amount": format_money(expense.amount, _currency(ctx)),
        },
    )


def format_expense_details(details: ExpenseDetails, ctx: Context | None) -> str:
    """A multi-line description of an expense and how it is split."""
    currency = _currency(ctx)
    shares = "\n".join(
        translate(ctx, m.EXPENSE_SHARE, {"name": name, "amount": format_money(amount, currency)})
        for name, amount in details.shares
    )
    return translate(
        ctx,
        m.EXPENSE_DETAILS,
        {
            "number": details.number,
            "description": details.description,
            "amount": format_money(details.amount, currency),
            "payer": details.payer,
            "shares": shares,
        },
    )


def delete_expense(store: Store, chat_id: int, number: int, ctx: Context | None) -> str:
    """Delete expense ``number``; raises CommandError if the store fails."""
    args = {"number": number}
    try:
        if store.count_expenses(chat_id, number) == 0:
            logger.warning(translate(None, m.DELETE_EXPENSE_NOT_FOUND, args))
            return translate(ctx, m.DELETE_EXPENSE_NOT_FOUND, args)
        store.delete_expense(chat_id, number)
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise CommandError(ErrorKind.DELETE_EXPENSE, number=number) from err
    return translate(ctx, m.DELETE_EXPENSE_OK, args)


def list_expenses(store: Store, chat_id: int, description: str, ctx: Context | None) -> str:
    """List expenses, filtered by description when one is given."""
    try:
        expenses = store.list_expenses(chat_id, description or None)
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise CommandError(ErrorKind.LIST_EXPENSES, description=description) from err
    if expenses:
        return "\n".join(format_expense(expense, ctx) for expense in expenses)
    if not description:
        return translate(ctx, m.LIST_EXPENSES_NOT_FOUND)
    return translate(ctx, m.LIST_EXPENSES_DESCR_NOT_FOUND, {"description": description})


def show_expense(store: Store, chat_id: int, number: int, ctx: Context | None) -> str:
    """Show the details of expense ``number``."""
    args = {"number": number}
    try:
        details = (
            store.expense_details(chat_id, number)
            if store.count_expenses(chat_id, number) > 0
            else None
        )
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise CommandError(ErrorKind.SHOW_EXPENSE, number=number) from err
    if details is None:
        logger.warning(translate(None, m.SHOW_EXPENSE_NOT_FOUND, args))
        return translate(ctx, m.SHOW_EXPENSE_NOT_FOUND, args)
    return format_expense_details(details, ctx)