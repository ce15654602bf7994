from marshmallow import Schema, fields, validate

from ..extensions import ma
from ..models.polls import Poll


class PollCreateSchema(Schema):
    question = fields.Str(required=True)
    type = fields.Str(required=True, validate=validate.OneOf(Poll.VALID_TYPES))
    options = fields.List(fields.Str(), required=False, load_default=None)
    anonymous = fields.Bool(required=False, load_default=True)
    vote_goal = fields.Int(required=True, strict=True)


class VoteDetailSchema(Schema):
    voter_id = fields.Str()
    display_name = fields.Str()
    email = fields.Str(allow_none=True)
    timestamp = fields.DateTime()


class PollReadSchema(ma.Schema):
    """Durable poll record shape; also the snapshot carried by the change feed."""

    id = fields.Str()
    community_id = fields.Str()
    question = fields.Str()
    type = fields.Str()
    options = fields.List(fields.Str())
    anonymous = fields.Bool()
    vote_goal = fields.Int()
    votes = fields.Dict(keys=fields.Str(), values=fields.Int())
    total_votes = fields.Int()
    voters = fields.List(fields.Str())
    voter_detail = fields.Dict(keys=fields.Str(), values=fields.List(fields.Nested(VoteDetailSchema)))
    status = fields.Str()
    comment_count = fields.Int()
    created_by = fields.Str()
    created_at = fields.DateTime()
    resolved_at = fields.DateTime(allow_none=True)
