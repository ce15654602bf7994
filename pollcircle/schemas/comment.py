from marshmallow import Schema, fields

from ..extensions import ma


class CommentCreateSchema(Schema):
    content = fields.Str(required=True)
    disclose = fields.Bool(required=False, load_default=False)


class CommentReadSchema(ma.Schema):
    id = fields.Str()
    poll_id = fields.Str()
    content = fields.Str()
    disclosed = fields.Bool()
    author_id = fields.Str(allow_none=True)
    timestamp = fields.DateTime()
