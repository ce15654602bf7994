import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select

from ..feeds import ChangeFeed
from ..models.comment import Comment
from ..models.option import PollOption
from ..models.polls import Poll
from ..models.vote import PollVoter, VoteDetail
from ..utils.clock import utcnow
from ..utils.store import store_call

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Deletes resolved polls older than the retention window, in one batch."""

    def __init__(
        self,
        session,
        retention_days: int = 30,
        cascade_comments: bool = True,
        feed: Optional[ChangeFeed] = None,
    ):
        self.session = session
        self.retention_days = retention_days
        self.cascade_comments = cascade_comments
        self.feed = feed

    def sweep(self, now: Optional[datetime] = None) -> int:
        cutoff = (now or utcnow()) - timedelta(days=self.retention_days)

        with store_call(self.session, "retention_sweep"):
            poll_ids = list(
                self.session.execute(
                    select(Poll.id).where(Poll.status == Poll.STATUS_RESOLVED, Poll.created_at < cutoff)
                ).scalars()
            )
            if not poll_ids:
                self.session.commit()
                logger.info("No old polls to clean up")
                return 0

            children = [VoteDetail, PollVoter, PollOption]
            if self.cascade_comments:
                children.append(Comment)
            for model in children:
                self.session.execute(
                    delete(model)
                    .where(model.poll_id.in_(poll_ids))
                    .execution_options(synchronize_session=False)
                )
            self.session.execute(
                delete(Poll).where(Poll.id.in_(poll_ids)).execution_options(synchronize_session=False)
            )
            self.session.commit()

        if self.feed is not None:
            for poll_id in poll_ids:
                self.feed.forget(poll_id)
        logger.info("Cleaned up %d old polls (comments %s)",
                    len(poll_ids), "deleted" if self.cascade_comments else "kept")
        return len(poll_ids)
