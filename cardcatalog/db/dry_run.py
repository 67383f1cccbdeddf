"""
Dry-run transactional executor.

Wraps one unit of work in the session's transaction and then either commits
it or throws it away. The work always runs to completion, so a dry run
reports exactly what a real run would have done.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_dry_run(
    session: AsyncSession,
    dry_run: bool,
    work: Callable[[], Awaitable[T]],
) -> T:
    """
    Run work inside a transaction, then commit or discard it.

    On a dry run the transaction is rolled back and every object the work
    touched is detached from the session, so ids assigned during the run do
    not leak into a later call on the same session.

    Args:
        session: Unit of work the import reads and writes through
        dry_run: Discard all writes when True
        work: Coroutine factory producing the result

    Returns:
        Whatever work returned

    Raises:
        Anything raised by work (including cancellation), after rollback
    """
    try:
        result = await work()
    except BaseException:
        await session.rollback()
        session.expunge_all()
        raise

    if dry_run:
        await session.rollback()
        session.expunge_all()
        logger.debug("Dry run: discarded pending changes")
    else:
        await session.commit()

    return result
