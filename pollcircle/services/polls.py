import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import select, update

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models.community import Community, CommunityMember
from ..models.option import PollOption
from ..models.polls import Poll
from ..schemas.poll import PollReadSchema
from ..utils.identity import CurrentUser
from ..utils.ids import IdGenerator, new_id
from ..utils.store import store_call

logger = logging.getLogger(__name__)

QUESTION_MAX = 140
OPTION_MAX = 50
MIN_OPTIONS = 2
MAX_OPTIONS = 6

_snapshot_schema = PollReadSchema()


@dataclass
class PollSpec:
    question: str
    type: str
    vote_goal: int
    options: Optional[Sequence[str]] = None
    anonymous: bool = True


def validate_poll_spec(spec: PollSpec) -> tuple[str, list[str]]:
    """Return the cleaned question and options, or raise ValidationError."""
    question = (spec.question or "").strip()
    if not 1 <= len(question) <= QUESTION_MAX:
        raise ValidationError(f"Question must be 1-{QUESTION_MAX} characters")

    if spec.type not in Poll.VALID_TYPES:
        raise ValidationError(f"Poll type must be one of {', '.join(Poll.VALID_TYPES)}")

    if isinstance(spec.vote_goal, bool) or not isinstance(spec.vote_goal, int) or spec.vote_goal < 1:
        raise ValidationError("Vote goal must be at least 1")

    if spec.type == Poll.TYPE_PETITION:
        given = [o.strip().lower() for o in (spec.options or [])]
        if given and given != list(Poll.PETITION_OPTIONS):
            raise ValidationError("Petition options are always yes/no")
        return question, list(Poll.PETITION_OPTIONS)

    options = [o.strip() for o in (spec.options or []) if o and o.strip()]
    if not MIN_OPTIONS <= len(options) <= MAX_OPTIONS:
        raise ValidationError(f"Provide {MIN_OPTIONS}-{MAX_OPTIONS} options")
    if any(len(o) > OPTION_MAX for o in options):
        raise ValidationError(f"Options must be at most {OPTION_MAX} characters")
    if len({o.lower() for o in options}) != len(options):
        raise ValidationError("Options must be unique")
    return question, options


def snapshot(poll: Poll) -> dict:
    """Durable record shape of a poll, as delivered by the change feed."""
    return _snapshot_schema.dump(poll)


class PollStore:
    """The only writer that creates polls; never touches votes afterwards."""

    def __init__(self, session, id_generator: IdGenerator = new_id):
        self.session = session
        self.id_generator = id_generator

    def create_poll(self, community_id: str, spec: PollSpec, creator: CurrentUser) -> Poll:
        question, options = validate_poll_spec(spec)

        with store_call(self.session, "create_poll"):
            community = self.session.get(Community, community_id)
            if community is None:
                raise NotFoundError("Community not found")
            if not community.has_member(creator.id):
                raise ForbiddenError()

            poll = Poll(
                id=self.id_generator(),
                community_id=community_id,
                question=question,
                type=spec.type,
                anonymous=bool(spec.anonymous),
                vote_goal=spec.vote_goal,
                status=Poll.STATUS_ACTIVE,
                comment_count=0,
                created_by=creator.id,
            )
            for position, label in enumerate(options):
                poll.option_rows.append(PollOption(label=label, position=position, vote_count=0))
            self.session.add(poll)

            self.session.execute(
                update(Community)
                .where(Community.id == community_id)
                .values(poll_count=Community.poll_count + 1)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()

        logger.info("Poll %s created in community %s", poll.id, community_id)
        return poll

    def get_poll(self, poll_id: str) -> Poll:
        poll = self.session.get(Poll, poll_id)
        if poll is None:
            raise NotFoundError("Poll not found")
        return poll

    def list_community_polls(self, community_id: str) -> list[Poll]:
        if self.session.get(Community, community_id) is None:
            raise NotFoundError("Community not found")
        return list(
            self.session.execute(
                select(Poll)
                .where(Poll.community_id == community_id)
                .order_by(Poll.created_at.desc())
            ).scalars()
        )

    def trending_polls(self, user_id: str, limit: int = 10) -> list[Poll]:
        """Newest active polls across every community the user belongs to."""
        community_ids = select(CommunityMember.community_id).where(CommunityMember.user_id == user_id)
        return list(
            self.session.execute(
                select(Poll)
                .where(Poll.community_id.in_(community_ids), Poll.status == Poll.STATUS_ACTIVE)
                .order_by(Poll.created_at.desc())
                .limit(limit)
            ).scalars()
        )
