"""Replies to the transfer commands: record, delete and list."""

from __future__ import annotations

import logging
import sqlite3
from decimal import Decimal

from . import messages as m
from .messages import CommandError, Context, ErrorKind, format_money, translate
from .store import Store, Transfer

logger = logging.getLogger(__name__)


def _currency(ctx: Context | None) -> str:
    return ctx.currency if ctx is not None else m.DEFAULT_CURRENCY


def format_transfer(transfer: Transfer, ctx: Context | None) -> str:
    """One line describing a transfer."""
    return translate(
        ctx,
        m.TRANSFER,
        {
            "number": transfer.number,
            "sender": transfer.sender,
            "receiver": transfer.receiver,
            "amount": format_money(transfer.amount, _currency(ctx)),
        },
    )


def transfer(
    store: Store,
    chat_id: int,
    sender: str,
    receiver: str,
    amount: Decimal,
    ctx: Context | None,
) -> str:
    """Record ``amount`` given by ``sender`` to ``receiver``.

    Raises CommandError for an empty name or when the store fails.
    """
    if not sender or not receiver:
        raise CommandError(ErrorKind.EMPTY_INPUT)

    def failure() -> CommandError:
        return CommandError(
            ErrorKind.TRANSFER, sender=sender, receiver=receiver, amount=amount
        )

    try:
        if store.get_traveler(chat_id, sender) is None:
            args = {"name": sender}
            logger.warning(translate(None, m.TRANSFER_SENDER_NOT_FOUND, args))
            return translate(ctx, m.TRANSFER_SENDER_NOT_FOUND, args)
        if store.get_traveler(chat_id, receiver) is None:
            args = {"name": receiver}
            logger.warning(translate(None, m.TRANSFER_RECEIVER_NOT_FOUND, args))
            return translate(ctx, m.TRANSFER_RECEIVER_NOT_FOUND, args)
        recorded = store.add_transfer(chat_id, sender, receiver, amount)
    except LookupError as err:
        error = failure()
        logger.warning("%s", error)
        raise error from err
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise failure() from err
    logger.debug("transfer recorded - number: %s", recorded.number)
    return translate(ctx, m.TRANSFER_OK)


def delete_transfer(store: Store, chat_id: int, number: int, ctx: Context | None) -> str:
    """Delete transfer ``number``; raises CommandError if the store fails."""
    args = {"number": number}
    try:
        if store.count_transfers(chat_id, number) == 0:
            logger.warning(translate(None, m.DELETE_TRANSFER_NOT_FOUND, args))
            return translate(ctx, m.DELETE_TRANSFER_NOT_FOUND, args)
        store.delete_transfer(chat_id, number)
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise CommandError(ErrorKind.DELETE_TRANSFER, number=number) from err
    return translate(ctx, m.DELETE_TRANSFER_OK, args)


def list_transfers(store: Store, chat_id: int, name: str, ctx: Context | None) -> str:
    """List transfers, only those involving ``name`` when one is given."""
    try:
        transfers = store.list_transfers(chat_id, name or None)
    except sqlite3.Error as err:
        logger.error("%s", err)
        raise CommandError(ErrorKind.LIST_TRANSFERS, name=name) from err
    if transfers:
        return "\n".join(format_transfer(item, ctx) for item in transfers)
    if not name:
        return translate(ctx, m.LIST_TRANSFERS_NOT_FOUND)
    return translate(ctx, m.LIST_TRANSFERS_NAME_NOT_FOUND, {"name": name})