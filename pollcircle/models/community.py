from ..extensions import db
from ..utils.clock import utcnow
from ..utils.ids import new_id


class Community(db.Model):
    __tablename__ = "communities"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=False, default="")

    # Stored normalized (uppercase, no separators)
    join_code = db.Column(db.String(8), nullable=False, unique=True, index=True)

    created_by = db.Column(db.String(128), nullable=False)
    poll_count = db.Column(db.Integer, nullable=False, default=0)
    total_votes = db.Column(db.Integer, nullable=False, default=0)
    last_activity_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    memberships = db.relationship(
        "CommunityMember",
        backref="community",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="CommunityMember.id",
    )
    authorities = db.relationship(
        "AuthorityEmail",
        backref="community",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="AuthorityEmail.id",
    )

    @property
    def members(self) -> list[str]:
        return [m.user_id for m in self.memberships]

    @property
    def admins(self) -> list[str]:
        return [m.user_id for m in self.memberships if m.is_admin]

    @property
    def authority_emails(self) -> list[str]:
        return [a.email for a in self.authorities]

    def has_member(self, user_id: str) -> bool:
        return user_id in self.members


class CommunityMember(db.Model):
    __tablename__ = "community_members"

    id = db.Column(db.Integer, primary_key=True)
    community_id = db.Column(db.String(36), db.ForeignKey("communities.id"), nullable=False, index=True)
    user_id = db.Column(db.String(128), nullable=False, index=True)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    joined_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint("community_id", "user_id", name="uq_community_members_user"),
    )


class AuthorityEmail(db.Model):
    __tablename__ = "authority_emails"

    id = db.Column(db.Integer, primary_key=True)
    community_id = db.Column(db.String(36), db.ForeignKey("communities.id"), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)
    added_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint("community_id", "email", name="uq_authority_emails_email"),
    )
