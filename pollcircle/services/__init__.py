from dataclasses import dataclass

from flask import current_app

from ..feeds import ChangeFeed
from .comments import CommentThread
from .engagement import EngagementTracker
from .notifier import ResolutionNotifier
from .polls import PollStore
from .registry import MembershipRegistry
from .sweeper import RetentionSweeper
from .voting import VoteService

EXTENSION_KEY = "pollcircle"


@dataclass
class Services:
    feed: ChangeFeed
    registry: MembershipRegistry
    polls: PollStore
    voting: VoteService
    notifier: ResolutionNotifier
    engagement: EngagementTracker
    comments: CommentThread
    sweeper: RetentionSweeper


def build_services(session, config) -> Services:
    """Wire every component to one explicit store client and one change feed."""
    feed = ChangeFeed()
    services = Services(
        feed=feed,
        registry=MembershipRegistry(session, max_code_attempts=config["JOIN_CODE_MAX_ATTEMPTS"]),
        polls=PollStore(session),
        voting=VoteService(session, feed=feed),
        notifier=ResolutionNotifier(
            session,
            max_workers=config["NOTIFIER_MAX_WORKERS"],
            dispatch_workers=config["NOTIFIER_DISPATCH_WORKERS"],
        ),
        engagement=EngagementTracker(session),
        comments=CommentThread(session, feed=feed),
        sweeper=RetentionSweeper(
            session,
            retention_days=config["RETENTION_DAYS"],
            cascade_comments=config["RETENTION_CASCADE_COMMENTS"],
            feed=feed,
        ),
    )
    feed.register(services.notifier.on_poll_change)
    feed.register(services.engagement.on_poll_change)
    return services


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
