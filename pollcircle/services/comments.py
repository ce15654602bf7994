import logging
from typing import Callable, Optional

from sqlalchemy import select, update

from ..errors import NotFoundError, ValidationError
from ..feeds import ChangeFeed, Subscription
from ..models.comment import Comment
from ..models.polls import Poll
from ..schemas.comment import CommentReadSchema
from ..utils.clock import utcnow
from ..utils.identity import CurrentUser
from ..utils.ids import IdGenerator, new_id
from ..utils.store import store_call
from .polls import snapshot

logger = logging.getLogger(__name__)

CONTENT_MAX = 500

_comments_schema = CommentReadSchema(many=True)


class CommentThread:
    """Append-only discussion under a poll."""

    def __init__(self, session, feed: Optional[ChangeFeed] = None, id_generator: IdGenerator = new_id):
        self.session = session
        self.feed = feed
        self.id_generator = id_generator

    def add_comment(self, poll_id: str, text: str, author: CurrentUser, disclose: bool = False) -> Comment:
        content = (text or "").strip()
        if not 1 <= len(content) <= CONTENT_MAX:
            raise ValidationError(f"Comment must be 1-{CONTENT_MAX} characters")

        with store_call(self.session, "add_comment"):
            poll = self.session.get(Poll, poll_id)
            if poll is None:
                raise NotFoundError("Poll not found")
            before = snapshot(poll)

            comment = Comment(
                id=self.id_generator(),
                poll_id=poll_id,
                content=content,
                disclosed=bool(disclose),
                author_id=author.id if disclose else None,
                timestamp=utcnow(),
            )
            self.session.add(comment)
            self.session.execute(
                update(Poll)
                .where(Poll.id == poll_id)
                .values(comment_count=Poll.comment_count + 1)
                .execution_options(synchronize_session=False)
            )
            self.session.flush()
            self.session.expire_all()
            after = snapshot(self.session.get(Poll, poll_id))
            self.session.commit()

        logger.info("Comment %s added to poll %s", comment.id, poll_id)
        if self.feed is not None:
            self.feed.publish_poll_change(before, after)
            self.feed.publish_comments(poll_id, _comments_schema.dump(self.list_comments(poll_id)))
        return comment

    def list_comments(self, poll_id: str) -> list[Comment]:
        """Point-in-time read, newest first."""
        return list(
            self.session.execute(
                select(Comment)
                .where(Comment.poll_id == poll_id)
                .order_by(Comment.timestamp.desc(), Comment.id.desc())
            ).scalars()
        )

    def subscribe(self, poll_id: str, callback: Callable[[list], None]) -> Subscription:
        """Live view: `callback` gets the full serialized list, newest first, after every new comment."""
        if self.feed is None:
            raise RuntimeError("CommentThread was built without a change feed")
        return self.feed.subscribe_comments(poll_id, callback)
