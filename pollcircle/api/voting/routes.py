from flask import Blueprint, request
from flasgger import swag_from
from flask_jwt_extended import jwt_required

from ...schemas.vote import VoteSubmitSchema, VoteStatusSchema
from ...services import get_services
from ...utils.identity import resolve_current_user
from ...utils.validation import validate_or_abort

voting_bp = Blueprint("voting", __name__)
vote_submit_schema = VoteSubmitSchema()
vote_status_schema = VoteStatusSchema()


@voting_bp.post("/<poll_id>/vote")
@jwt_required()
@swag_from({
    "tags": ["Voting"],
    "summary": "Submit a vote",
    "description": (
        "Non-anonymous polls accept one vote per voter id. "
        "Anonymous polls do not check for duplicates. "
        "The poll resolves once the total reaches its vote goal."
    ),
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "option": {"type": "string", "example": "yes"},
                "disclose": {"type": "boolean", "example": True},
            },
            "required": ["option"],
        },
    }],
    "responses": {
        201: {"description": "Vote recorded"},
        400: {"description": "Validation error / invalid option"},
        404: {"description": "Poll not found"},
        409: {"description": "Duplicate vote / poll already resolved"},
        503: {"description": "Store unavailable, retry with backoff"},
    },
})
def submit_vote(poll_id):
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(vote_submit_schema, payload)

    get_services().voting.submit_vote(
        poll_id,
        payload["option"],
        resolve_current_user(),
        disclose=payload.get("disclose", True),
    )
    return {"message": "Vote recorded"}, 201


@voting_bp.get("/<poll_id>/vote/status")
@jwt_required()
@swag_from({
    "tags": ["Voting"],
    "summary": "Check whether the caller is in the poll's voter ledger",
    "responses": {200: {"description": "OK"}, 404: {"description": "Poll not found"}},
})
def vote_status(poll_id):
    services = get_services()
    poll = services.polls.get_poll(poll_id)
    has_voted = services.voting.has_voted(poll_id, resolve_current_user().id)
    return vote_status_schema.dump({"has_voted": has_voted, "poll_id": poll.id, "status": poll.status}), 200
