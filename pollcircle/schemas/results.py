from marshmallow import Schema, fields


class OptionResultSchema(Schema):
    option = fields.Str(required=True)
    votes = fields.Int(required=True)
    percentage = fields.Float(required=True)


class PollResultsSchema(Schema):
    poll_id = fields.Str(required=True)
    question = fields.Str(required=True)
    status = fields.Str(required=True)
    total_votes = fields.Int(required=True)
    vote_goal = fields.Int(required=True)
    results = fields.List(fields.Nested(OptionResultSchema), required=True)
    winner = fields.Nested(OptionResultSchema, allow_none=True)
    tier = fields.Str(allow_none=True)
