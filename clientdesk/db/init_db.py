# clientdesk/db/init_db.py
"""
Dialect-agnostic initialization of default data using SQLModel ORM.
"""

import logging

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from clientdesk.core.constants import DEFAULT_CLIENT_STATUSES
from clientdesk.models.client import ClientStatus

logger = logging.getLogger(__name__)


async def init_default_statuses(session: AsyncSession) -> None:
    """
    Populate client_status only when it is empty. Existing statuses are
    managed outside the application and never touched.
    """
    existing = (await session.exec(select(ClientStatus))).first()
    if existing is not None:
        logger.debug("client_status already populated, skipping seed.")
        return

    for name in DEFAULT_CLIENT_STATUSES:
        session.add(ClientStatus(name=name))
        logger.debug(f"Default status added: {name}")

    await session.commit()
    logger.info("Default client statuses initialized.")


async def init_db(session: AsyncSession) -> None:
    """Main entry point for ORM-based data initialization."""
    logger.info("[init_db] Initializing default data via ORM...")
    await init_default_statuses(session)
