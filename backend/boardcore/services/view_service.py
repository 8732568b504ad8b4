"""View counting with a sliding per-viewer dedup window."""

from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.config import settings
from boardcore.models.base import utcnow
from boardcore.services.ledger import VIEW_KINDS, EngagementLedger
from boardcore.services.targets import TargetKind, find_target

logger = structlog.get_logger(__name__)


class ViewService:
    """Decides whether a page view counts toward a post's or question's ``view_count``.

    Logged-in viewers are keyed by user id, anonymous viewers by IP address.
    A view counts when the same key has no counted view of that target in
    the trailing window (strictly newer than ``now - window``).
    """

    def __init__(
        self,
        db: AsyncSession,
        window: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.window = window or timedelta(hours=settings.VIEW_DEDUP_WINDOW_HOURS)
        self.clock = clock
        self.ledger = EngagementLedger(db)
        self.logger = logger.bind(service="view_service")

    async def should_count(
        self,
        target_id: int,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        kind: TargetKind = TargetKind.POST,
    ) -> bool:
        """True if a view from this viewer would be counted now."""
        if kind not in VIEW_KINDS:
            raise ValueError(f"{kind.value} targets do not count views")
        model = VIEW_KINDS[kind].model
        cutoff = self.clock() - self.window

        stmt = select(model.id).where(
            model.target_id == target_id,
            model.viewed_at > cutoff,
        )
        if user_id is not None:
            stmt = stmt.where(model.user_id == user_id)
        elif ip_address and ip_address.strip():
            stmt = stmt.where(model.ip_address == ip_address)
        else:
            return False

        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is None

    async def record_view(
        self,
        target_id: int,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        kind: TargetKind = TargetKind.POST,
    ) -> bool:
        """Count a view if it falls outside the viewer's window.

        Returns whether the view was counted. Views without any identity,
        or on a missing target, are never counted. The target row is locked
        before the window check so two requests from one viewer cannot both
        pass it.
        """
        if user_id is None and not (ip_address and ip_address.strip()):
            return False

        target = await find_target(self.db, kind, target_id, include_deleted=False, for_update=True)
        if target is None:
            return False

        if not await self.should_count(target_id, user_id, ip_address, kind=kind):
            return False

        target.view_count = target.view_count + 1
        await self.ledger.record(
            VIEW_KINDS[kind],
            target_id,
            user_id,
            ip_address=ip_address,
            at=self.clock(),
        )

        self.logger.debug("view_counted", kind=kind.value, target_id=target_id, user_id=user_id,
                          ip_address=ip_address, view_count=target.view_count)
        return True
