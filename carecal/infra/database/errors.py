"""Translate SQLAlchemy/driver errors into StorageFailureError."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError

from carecal.core.exceptions import StorageFailureError

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Wrap any SQLAlchemyError raised inside the block; other exceptions pass through.

    Usable around ``await`` calls inside async functions.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Storage failure during %s: %s", operation, exc)
        raise StorageFailureError(
            f"Storage failure during {operation}",
            details={"reason": "storage_failure", "operation": operation},
            cause=exc,
        ) from exc
