from flask import Blueprint, request
from flasgger import swag_from
from flask_jwt_extended import jwt_required

from ...schemas.poll import PollReadSchema
from ...services import get_services
from ...utils.identity import resolve_current_user

polls_bp = Blueprint("polls", __name__)

poll_read_schema = PollReadSchema()
poll_read_many_schema = PollReadSchema(many=True)


@polls_bp.get("/trending")
@jwt_required()
@swag_from({
    "tags": ["Polls"],
    "summary": "Newest active polls across the caller's communities",
    "parameters": [{"in": "query", "name": "limit", "type": "integer", "required": False, "default": 10}],
    "responses": {200: {"description": "OK"}, 400: {"description": "Bad request"}, 401: {"description": "Unauthorized"}},
})
def trending_polls():
    try:
        limit = max(1, min(int(request.args.get("limit", 10)), 50))
    except ValueError:
        return {"message": "Invalid limit"}, 400

    polls = get_services().polls.trending_polls(resolve_current_user().id, limit=limit)
    return {"polls": poll_read_many_schema.dump(polls)}, 200


@polls_bp.get("/<poll_id>")
@jwt_required()
@swag_from({"tags": ["Polls"], "summary": "Get poll details", "responses": {200: {}, 401: {}, 404: {}}})
def get_poll(poll_id):
    poll = get_services().polls.get_poll(poll_id)
    return {"poll": poll_read_schema.dump(poll)}, 200
