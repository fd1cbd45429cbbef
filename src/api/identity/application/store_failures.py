"""Classification of credential store failures.

A refused, dropped or invalidated connection says nothing about whether a
credential is valid. The session path reports such failures as
TransientFailureError so callers retry them and never treat them as a
refusal.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from identity.ports.exceptions import TransientFailureError


def is_store_unreachable(error: BaseException) -> bool:
    """Whether an error means the store could not be reached."""
    if isinstance(error, (OperationalError, InterfaceError, OSError)):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


@asynccontextmanager
async def store_failures_as_transient(operation: str) -> AsyncIterator[None]:
    """Re-raise connectivity errors from the block as TransientFailureError.

    Integrity violations and other statement errors pass through unchanged.
    """
    try:
        yield
    except (DBAPIError, OSError) as e:
        if not is_store_unreachable(e):
            raise
        raise TransientFailureError(
            f"{operation}: credential store unreachable ({type(e).__name__})"
        ) from e
