"""
Vote submission.

Three independently atomic store primitives, no per-poll lock:

1. conditional per-option increment (`vote_count = vote_count + 1` only while
   the poll is active),
2. ledger insert with set semantics (unique on poll + voter),
3. status compare-and-set (`active -> resolved` only if still active).

The poll row is read `FOR SHARE` in the vote transaction: voters never block
each other, but the compare-and-set waits for in-flight votes to commit, so no
vote can land after resolution.
"""
import logging
from typing import Optional

from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import IntegrityError

from ..errors import (
    AlreadyResolvedError,
    DuplicateVoteError,
    InvalidOptionError,
    NotFoundError,
    TransientStoreError,
)
from ..feeds import ChangeFeed
from ..models.option import PollOption
from ..models.polls import Poll
from ..models.vote import PollVoter, VoteDetail
from ..utils.clock import utcnow
from ..utils.identity import ANONYMOUS_DISPLAY_NAME, CurrentUser
from ..utils.store import store_call
from .polls import snapshot

logger = logging.getLogger(__name__)


class VoteService:
    def __init__(self, session, feed: Optional[ChangeFeed] = None):
        self.session = session
        self.feed = feed

    def submit_vote(self, poll_id: str, option: str, voter: CurrentUser, disclose: bool = True) -> None:
        with store_call(self.session, "submit_vote"):
            poll = self.session.execute(
                select(Poll)
                .where(Poll.id == poll_id)
                .with_for_update(read=True)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if poll is None:
                raise NotFoundError("Poll not found")
            if not poll.has_option(option):
                raise InvalidOptionError(details={"options": poll.options})
            if not poll.is_active():
                raise AlreadyResolvedError()

            # Anonymous polls deliberately skip the duplicate check
            anonymous = poll.anonymous
            if not anonymous and self._in_ledger(poll_id, voter.id):
                raise DuplicateVoteError()

            before = snapshot(poll)

            counted = self.session.execute(
                update(PollOption)
                .where(
                    PollOption.poll_id == poll_id,
                    PollOption.label == option,
                    exists().where(Poll.id == poll_id, Poll.status == Poll.STATUS_ACTIVE),
                )
                .values(vote_count=PollOption.vote_count + 1)
                .execution_options(synchronize_session=False)
            ).rowcount
            if counted != 1:
                raise AlreadyResolvedError()

            if not anonymous:
                if not self._add_to_ledger(poll_id, voter.id):
                    # Same voter raced us between the check and the insert
                    raise DuplicateVoteError()
                self.session.add(VoteDetail(
                    poll_id=poll_id,
                    option_label=option,
                    voter_id=voter.id,
                    display_name=voter.label if disclose else ANONYMOUS_DISPLAY_NAME,
                    email=voter.email if disclose else None,
                    created_at=utcnow(),
                ))

            self.session.flush()
            self.session.expire_all()
            after = snapshot(self.session.get(Poll, poll_id))
            self.session.commit()

        logger.info("Vote recorded poll=%s option=%s anonymous=%s", poll_id, option, anonymous)
        self._publish(before, after)
        try:
            self._resolve_if_goal_reached(poll_id)
        except TransientStoreError:
            # The vote is committed; the next vote on this poll re-runs the check
            logger.warning("Resolution check for poll %s deferred: store unavailable", poll_id)

    def has_voted(self, poll_id: str, user_id: str) -> bool:
        return self._in_ledger(poll_id, user_id)

    def _in_ledger(self, poll_id: str, voter_id: str) -> bool:
        return self.session.execute(
            select(PollVoter.id).where(PollVoter.poll_id == poll_id, PollVoter.voter_id == voter_id)
        ).first() is not None

    def _add_to_ledger(self, poll_id: str, voter_id: str) -> bool:
        """Set insert. Returns False, changing nothing, if the voter is already present."""
        savepoint = self.session.begin_nested()
        try:
            self.session.add(PollVoter(poll_id=poll_id, voter_id=voter_id))
            self.session.flush()
        except IntegrityError:
            savepoint.rollback()
            return False
        savepoint.commit()
        return True

    def _resolve_if_goal_reached(self, poll_id: str) -> bool:
        """Compare-and-set active -> resolved. Only one concurrent caller wins."""
        with store_call(self.session, "resolve_poll"):
            total, goal, status = self.session.execute(
                select(
                    func.coalesce(func.sum(PollOption.vote_count), 0),
                    Poll.vote_goal,
                    Poll.status,
                )
                .select_from(Poll)
                .join(PollOption, PollOption.poll_id == Poll.id)
                .where(Poll.id == poll_id)
                .group_by(Poll.id, Poll.vote_goal, Poll.status)
            ).one()
            if total < goal or status != Poll.STATUS_ACTIVE:
                self.session.commit()
                return False

            self.session.expire_all()
            before = snapshot(self.session.get(Poll, poll_id))

            won = self.session.execute(
                update(Poll)
                .where(Poll.id == poll_id, Poll.status == Poll.STATUS_ACTIVE)
                .values(status=Poll.STATUS_RESOLVED, resolved_at=utcnow())
                .execution_options(synchronize_session=False)
            ).rowcount == 1
            if not won:
                self.session.rollback()
                return False

            self.session.expire_all()
            after = snapshot(self.session.get(Poll, poll_id))
            self.session.commit()

        logger.info("Poll %s resolved with %d/%d votes", poll_id, total, goal)
        self._publish(before, after)
        return True

    def _publish(self, before: dict, after: dict) -> None:
        if self.feed is not None:
            self.feed.publish_poll_change(before, after)
