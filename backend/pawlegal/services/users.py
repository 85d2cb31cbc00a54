from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pawlegal.models import User


async def load_users(db: AsyncSession, ids: Iterable[int | None]) -> dict[int, User]:
    """Fetch the given users in one query, keyed by id. Missing ids are absent."""
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    result = await db.execute(select(User).where(User.id.in_(wanted)))
    return {u.id: u for u in result.scalars().all()}
