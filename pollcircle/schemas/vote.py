from marshmallow import Schema, fields


class VoteSubmitSchema(Schema):
    option = fields.Str(required=True)
    # False keeps the voter id in the ledger but hides name and email in vote details
    disclose = fields.Bool(required=False, load_default=True)


class VoteStatusSchema(Schema):
    has_voted = fields.Bool(required=True)
    poll_id = fields.Str(required=True)
    status = fields.Str(required=True)
