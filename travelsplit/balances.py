"""Reply to /showbalances: who owes how much to whom."""

from __future__ import annotations

import logging
import sqlite3

from . import messages as m
from .messages import CommandError, Context, ErrorKind, format_money, round_money, translate
from .store import Balance, Store

logger = logging.getLogger(__name__)


def _currency(ctx: Context | None) -> str:
    return ctx.currency if ctx is not None else m.DEFAULT_CURRENCY


def _nonzero(balances: list[Balance], currency: str) -> list[Balance]:
    """Balances that are still non-zero once rounded to the currency's minor unit."""
    return [b for b in balances if round_money(b.debt, currency) != 0]


def _all_balances(store: Store, chat_id: int, ctx: Context | None) -> str:
    currency = _currency(ctx)
    lines = [
        translate(
            ctx,
            m.SHOW_BALANCES_OK,
            {
                "debtor": balance.debtor_name,
                "debt": format_money(balance.debt, currency),
                "creditor": balance.creditor_name,
            },
        )
        for balance in _nonzero(store.balances(chat_id), currency)
    ]
    if not lines:
        return translate(ctx, m.SHOW_BALANCES_SETTLED_UP)
    return "\n".join(lines)


def _traveler_balances(store: Store, chat_id: int, name: str, ctx: Context | None) -> str:
    currency = _currency(ctx)
    lines = []
    for balance in _nonzero(store.balances(chat_id, name), currency):
        is_debtor = balance.debtor_name == name
        case = m.TRAVELER_IS_CASE_DEBTOR if is_debtor else m.TRAVELER_IS_CASE_CREDITOR
        other = balance.creditor_name if is_debtor else balance.debtor_name
        lines.append(
            translate(
                ctx,
                m.SHOW_BALANCES_TRAVELER_OK,
                {
                    "traveler_name": name,
                    "traveler_is": translate(ctx, case),
                    "debt": format_money(balance.debt, currency),
                    "other_traveler_name": other,
                },
            )
        )
    if not lines:
        return translate(ctx, m.SHOW_BALANCES_TRAVELER_SETTLED_UP, {"name": name})
    return "\n".join(lines)


def show_balances(store: Store, chat_id: int, name: str, ctx: Context | None) -> str:
    """Show all balances, or only those of traveler ``name`` when one is given.

    Raises CommandError when the store fails.
    """
    try:
        if not name:
            return _all_balances(store, chat_id, ctx)
        if store.count_travelers(chat_id, name) == 0:
            args = {"name": name}
            logger.warning(translate(None, m.SHOW_BALANCES_TRAVELER_NOT_FOUND, args))
            return translate(ctx, m.SHOW_BALANCES_TRAVELER_NOT_FOUND, args)
        return _traveler_balances(store, chat_id, name, ctx)
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise CommandError(ErrorKind.SHOW_BALANCES, name=name) from err