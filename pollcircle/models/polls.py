from ..extensions import db
from ..utils.clock import utcnow
from ..utils.ids import new_id


class Poll(db.Model):
    __tablename__ = "polls"

    STATUS_ACTIVE = "active"
    STATUS_RESOLVED = "resolved"
    VALID_STATUSES = (STATUS_ACTIVE, STATUS_RESOLVED)

    TYPE_PETITION = "petition"
    TYPE_MULTIPLE_CHOICE = "multiple_choice"
    VALID_TYPES = (TYPE_PETITION, TYPE_MULTIPLE_CHOICE)

    PETITION_OPTIONS = ("yes", "no")

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    community_id = db.Column(db.String(36), db.ForeignKey("communities.id"), nullable=False, index=True)

    question = db.Column(db.String(140), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    anonymous = db.Column(db.Boolean, nullable=False, default=True)
    vote_goal = db.Column(db.Integer, nullable=False)

    # Only ever moves active -> resolved, via compare-and-set in the vote service
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE, index=True)

    comment_count = db.Column(db.Integer, nullable=False, default=0)
    created_by = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    resolved_at = db.Column(db.DateTime, nullable=True)

    # relationships
    option_rows = db.relationship(
        "PollOption",
        backref="poll",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="PollOption.position",
    )
    voter_rows = db.relationship("PollVoter", lazy=True, cascade="all, delete-orphan")
    detail_rows = db.relationship(
        "VoteDetail",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="VoteDetail.id",
    )

    @property
    def options(self) -> list[str]:
        return [o.label for o in self.option_rows]

    @property
    def votes(self) -> dict[str, int]:
        return {o.label: o.vote_count for o in self.option_rows}

    @property
    def total_votes(self) -> int:
        return sum(o.vote_count for o in self.option_rows)

    @property
    def voters(self) -> list[str]:
        return sorted(v.voter_id for v in self.voter_rows)

    @property
    def voter_detail(self) -> dict[str, list[dict]]:
        detail = {label: [] for label in self.options}
        for row in self.detail_rows:
            detail.setdefault(row.option_label, []).append({
                "voter_id": row.voter_id,
                "display_name": row.display_name,
                "email": row.email,
                "timestamp": row.created_at,
            })
        return detail

    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE

    def has_option(self, option: str) -> bool:
        return option in self.options
