from marshmallow import Schema, fields

from ..extensions import ma
from ..utils.join_codes import format_join_code


class CommunityCreateSchema(Schema):
    title = fields.Str(required=True)
    description = fields.Str(required=False, load_default="")
    authority_emails = fields.List(fields.Email(), required=False, load_default=list)


class JoinCommunitySchema(Schema):
    code = fields.Str(required=True)


class CommunityReadSchema(ma.Schema):
    id = fields.Str()
    title = fields.Str()
    description = fields.Str()
    join_code = fields.Str()
    join_code_display = fields.Method("get_join_code_display")
    members = fields.List(fields.Str())
    admins = fields.List(fields.Str())
    authority_emails = fields.List(fields.Str())
    poll_count = fields.Int()
    total_votes = fields.Int()
    last_activity_at = fields.DateTime(allow_none=True)
    created_by = fields.Str()
    created_at = fields.DateTime()

    def get_join_code_display(self, community):
        return format_join_code(community.join_code)
