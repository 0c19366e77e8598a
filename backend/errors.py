"""Exceptions raised by the chain tracker and store error translation."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager


class NotFoundError(LookupError):
    """An id referenced by the caller is not present."""


class ChainNotFoundError(NotFoundError):
    pass


class StepNotFoundError(NotFoundError):
    pass


class TemplateNotFoundError(NotFoundError):
    pass


class ValidationError(ValueError):
    """Data failed the save gate (for example a blank title)."""


class StoreError(RuntimeError):
    """A persistence operation failed.

    The message is meant to be shown to the user as is; the underlying
    exception is kept as ``__cause__`` and logged when raised.
    """


GENERIC_STORE_MESSAGE = "An error occurred. Please try again."


def store_error_message(exc: Exception) -> str:
    """Return a user-facing message for a ``sqlite3`` failure."""

    if isinstance(exc, sqlite3.IntegrityError):
        return "This item already exists."
    if isinstance(exc, sqlite3.OperationalError):
        text = str(exc).lower()
        if "locked" in text or "busy" in text:
            return "Service temporarily unavailable. Please try again."
        if "no such table" in text:
            return "The requested data was not found."
        if "readonly" in text or "read-only" in text:
            return "You do not have permission to perform this action."
        return "Operation failed. Please try again."
    if isinstance(exc, sqlite3.DatabaseError):
        return "Data error occurred. Please contact support."
    return GENERIC_STORE_MESSAGE


@contextmanager
def store_errors(action: str):
    """Translate ``sqlite3`` errors raised inside the block to
    :class:`StoreError`."""

    try:
        yield
    except sqlite3.Error as exc:
        logging.exception("Store failure while trying to %s", action)
        raise StoreError(store_error_message(exc)) from exc
