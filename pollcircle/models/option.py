from ..extensions import db


class PollOption(db.Model):
    __tablename__ = "poll_options"

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.String(36), db.ForeignKey("polls.id"), nullable=False, index=True)

    label = db.Column(db.String(50), nullable=False)
    position = db.Column(db.Integer, nullable=False)

    # Only ever changed by a single-statement `vote_count = vote_count + 1`
    vote_count = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint("poll_id", "label", name="uq_poll_options_label"),
    )
