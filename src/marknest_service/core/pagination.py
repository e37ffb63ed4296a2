"""Offset pagination over SQLAlchemy select statements."""

import math
from dataclasses import dataclass
from typing import Any, Dict, List
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class Page:
    items: List[Any]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    def meta(self) -> Dict[str, int]:
        return {
            "current_page": self.page,
            "last_page": self.last_page,
            "per_page": self.per_page,
            "total": self.total,
        }


async def paginate(
    session: AsyncSession,
    stmt: Select,
    page: int,
    per_page: int,
    scalars: bool = True,
) -> Page:
    """Run stmt for one page and count the full result set.

    Pass scalars=False when stmt selects more than one entity; items are
    then row tuples.
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    result = await session.execute(stmt.limit(per_page).offset((page - 1) * per_page))
    items = list(result.scalars().all()) if scalars else list(result.all())
    return Page(items=items, total=total, page=page, per_page=per_page)
