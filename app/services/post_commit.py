"""Best-effort steps that run after a primary write has committed"""

from typing import Awaitable, Callable
from sqlalchemy.ext.asyncio import AsyncSession
import logging

logger = logging.getLogger(__name__)

async def run_post_commit_step(
    db: AsyncSession,
    label: str,
    step: Callable[[], Awaitable[None]]
) -> bool:
    """
    Run one follow-up write in its own transaction

    A failure is logged and rolled back without touching earlier commits,
    and the caller goes on with its remaining steps.

    Returns:
        True if the step committed
    """
    try:
        await step()
        await db.commit()
        return True
    except Exception:
        await db.rollback()
        logger.exception(f"Post-commit step failed: {label}")
        return False
