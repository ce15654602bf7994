import logging
from typing import Callable, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..errors import (
    AlreadyMemberError,
    CodeGenerationExhaustedError,
    NotFoundError,
    ValidationError,
)
from ..models.community import AuthorityEmail, Community, CommunityMember
from ..utils.identity import CurrentUser
from ..utils.ids import IdGenerator, new_id
from ..utils.join_codes import generate_join_code, normalize_join_code
from ..utils.store import store_call

logger = logging.getLogger(__name__)

TITLE_MAX = 100
DESCRIPTION_MAX = 500


class MembershipRegistry:
    """Owns communities, their member sets and join codes."""

    def __init__(
        self,
        session,
        code_generator: Callable[[], str] = generate_join_code,
        id_generator: IdGenerator = new_id,
        max_code_attempts: int = 5,
    ):
        self.session = session
        self.code_generator = code_generator
        self.id_generator = id_generator
        self.max_code_attempts = max_code_attempts

    def create_community(
        self,
        title: str,
        description: str,
        creator: CurrentUser,
        authority_emails: Optional[Iterable[str]] = None,
    ) -> Community:
        title = (title or "").strip()
        description = (description or "").strip()
        if not 1 <= len(title) <= TITLE_MAX:
            raise ValidationError(f"Title must be 1-{TITLE_MAX} characters")
        if len(description) > DESCRIPTION_MAX:
            raise ValidationError(f"Description must be at most {DESCRIPTION_MAX} characters")

        emails = []
        for email in ([creator.email] if creator.email else []) + list(authority_emails or []):
            email = email.strip().lower()
            if email and email not in emails:
                emails.append(email)

        with store_call(self.session, "create_community"):
            for attempt in range(1, self.max_code_attempts + 1):
                code = normalize_join_code(self.code_generator())
                if self._code_taken(code):
                    logger.info("Join code collision on attempt %d", attempt)
                    continue

                community = Community(
                    id=self.id_generator(),
                    title=title,
                    description=description,
                    join_code=code,
                    created_by=creator.id,
                    poll_count=0,
                )
                community.memberships.append(CommunityMember(user_id=creator.id, is_admin=True))
                for email in emails:
                    community.authorities.append(AuthorityEmail(email=email))

                # Lost a race for the same code between lookup and insert
                savepoint = self.session.begin_nested()
                try:
                    self.session.add(community)
                    self.session.flush()
                except IntegrityError:
                    savepoint.rollback()
                    logger.info("Join code collision on insert, attempt %d", attempt)
                    continue

                self.session.commit()
                logger.info("Community %s created by %s", community.id, creator.id)
                return community

        raise CodeGenerationExhaustedError(
            details={"attempts": self.max_code_attempts}
        )

    def join_by_code(self, code: str, user: CurrentUser) -> Community:
        normalized = normalize_join_code(code)
        with store_call(self.session, "join_by_code"):
            community = self.session.execute(
                select(Community).where(Community.join_code == normalized)
            ).scalar_one_or_none()
            if community is None:
                raise NotFoundError("Invalid join code")
            if community.has_member(user.id):
                raise AlreadyMemberError()

            try:
                self.session.add(CommunityMember(community_id=community.id, user_id=user.id))
                self.session.flush()
            except IntegrityError:
                # Same user joined concurrently
                raise AlreadyMemberError()

            email = (user.email or "").strip().lower()
            if email and email not in community.authority_emails:
                savepoint = self.session.begin_nested()
                try:
                    self.session.add(AuthorityEmail(community_id=community.id, email=email))
                    self.session.flush()
                except IntegrityError:
                    savepoint.rollback()

            self.session.commit()

        logger.info("User %s joined community %s", user.id, community.id)
        return self.get_community(community.id)

    def get_community(self, community_id: str) -> Community:
        community = self.session.get(Community, community_id)
        if community is None:
            raise NotFoundError("Community not found")
        return community

    def find_by_code(self, code: str) -> Optional[Community]:
        return self.session.execute(
            select(Community).where(Community.join_code == normalize_join_code(code))
        ).scalar_one_or_none()

    def list_user_communities(self, user_id: str) -> list[Community]:
        return list(
            self.session.execute(
                select(Community)
                .join(CommunityMember, CommunityMember.community_id == Community.id)
                .where(CommunityMember.user_id == user_id)
                .order_by(Community.created_at.desc())
            ).scalars()
        )

    def _code_taken(self, code: str) -> bool:
        return self.session.execute(
            select(Community.id).where(Community.join_code == code)
        ).first() is not None
