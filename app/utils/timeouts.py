"""
WealthDesk - I/O Timeout Policy

Every awaited round trip to the database or the mail relay goes through
``with_timeout`` so that one configured budget applies everywhere.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.config import settings
from app.utils.error_handling import DataUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_timeout(
    awaitable: Awaitable[T],
    operation: str,
    seconds: Optional[float] = None,
) -> T:
    """
    Await ``awaitable`` within the configured I/O budget.

    Raises:
        DataUnavailable: the call timed out or the database raised
    """
    budget = seconds if seconds is not None else settings.io_timeout_seconds
    try:
        return await asyncio.wait_for(awaitable, timeout=budget)
    except asyncio.TimeoutError as exc:
        logger.error(f"{operation} timed out after {budget}s")
        raise DataUnavailable(f"{operation} timed out", original_error=exc) from exc
    except IntegrityError:
        # Constraint violations are caller errors, not outages
        raise
    except SQLAlchemyError as exc:
        logger.error(f"{operation} failed: {exc}")
        raise DataUnavailable(f"{operation} failed", original_error=exc) from exc
