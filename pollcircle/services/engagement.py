import logging

from sqlalchemy import update

from ..models.community import Community
from ..utils.clock import utcnow
from ..utils.store import store_call

logger = logging.getLogger(__name__)


class EngagementTracker:
    """Change-feed handler keeping a community's vote total and last activity."""

    def __init__(self, session):
        self.session = session

    def on_poll_change(self, before: dict, after: dict) -> bool:
        # Vote writes only; the status transition carries no new vote of its own
        if before.get("status") != after.get("status"):
            return False
        if after.get("total_votes", 0) <= before.get("total_votes", 0):
            return False

        with store_call(self.session, "track_engagement"):
            self.session.execute(
                update(Community)
                .where(Community.id == after["community_id"])
                .values(total_votes=Community.total_votes + 1, last_activity_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        logger.debug("Updated engagement for community %s", after["community_id"])
        return True
