from ..extensions import db
from ..utils.clock import utcnow


class PollVoter(db.Model):
    """Voter ledger entry; only written for non-anonymous polls."""

    __tablename__ = "poll_voters"

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.String(36), db.ForeignKey("polls.id"), nullable=False, index=True)
    voter_id = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        # Set semantics: one ledger row per voter per poll
        db.UniqueConstraint("poll_id", "voter_id", name="uq_poll_voters_voter"),
    )


class VoteDetail(db.Model):
    """Who voted for what on a non-anonymous poll. Append-only, not deduplicated."""

    __tablename__ = "vote_details"

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.String(36), db.ForeignKey("polls.id"), nullable=False, index=True)
    option_label = db.Column(db.String(50), nullable=False)

    voter_id = db.Column(db.String(128), nullable=False)
    display_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
