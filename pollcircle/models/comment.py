from ..extensions import db
from ..utils.clock import utcnow
from ..utils.ids import new_id


class Comment(db.Model):
    __tablename__ = "comments"

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    # Weak reference: no foreign key, retention decides what happens to orphans
    poll_id = db.Column(db.String(36), nullable=False, index=True)

    content = db.Column(db.String(500), nullable=False)
    disclosed = db.Column(db.Boolean, nullable=False, default=False)
    author_id = db.Column(db.String(128), nullable=True)

    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
