from flask import Blueprint, request, current_app
from flasgger import swag_from
from flask_jwt_extended import jwt_required

from ...errors import ForbiddenError
from ...schemas.community import CommunityCreateSchema, CommunityReadSchema, JoinCommunitySchema
from ...schemas.poll import PollCreateSchema, PollReadSchema
from ...services import get_services
from ...services.polls import PollSpec
from ...utils.identity import resolve_current_user
from ...utils.validation import validate_or_abort

communities_bp = Blueprint("communities", __name__)

community_create_schema = CommunityCreateSchema()
join_schema = JoinCommunitySchema()
community_read_schema = CommunityReadSchema()
community_read_many_schema = CommunityReadSchema(many=True)
poll_create_schema = PollCreateSchema()
poll_read_schema = PollReadSchema()
poll_read_many_schema = PollReadSchema(many=True)


@communities_bp.post("/")
@jwt_required()
@swag_from({
    "tags": ["Communities"],
    "summary": "Create a community; the caller becomes its first member and admin",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "example": "Maple Street Residents"},
                "description": {"type": "string", "example": "Decisions for our block"},
                "authority_emails": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["title"],
        },
    }],
    "responses": {
        201: {"description": "Created"},
        400: {"description": "Validation error"},
        409: {"description": "Join code generation exhausted"},
    },
})
def create_community():
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(community_create_schema, payload)

    community = get_services().registry.create_community(
        title=payload["title"],
        description=payload.get("description") or "",
        creator=resolve_current_user(),
        authority_emails=payload.get("authority_emails"),
    )
    return {"community": community_read_schema.dump(community)}, 201


@communities_bp.post("/join")
@jwt_required()
@swag_from({
    "tags": ["Communities"],
    "summary": "Join a community by its join code (case and dashes ignored)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {"code": {"type": "string", "example": "ABCD-EF23"}},
            "required": ["code"],
        },
    }],
    "responses": {
        200: {"description": "Joined"},
        404: {"description": "Invalid join code"},
        409: {"description": "Already a member"},
    },
})
def join_community():
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(join_schema, payload)

    community = get_services().registry.join_by_code(payload["code"], resolve_current_user())
    return {"community": community_read_schema.dump(community)}, 200


@communities_bp.get("/")
@jwt_required()
@swag_from({
    "tags": ["Communities"],
    "summary": "List the caller's communities",
    "responses": {200: {"description": "OK"}, 401: {"description": "Unauthorized"}},
})
def list_my_communities():
    user = resolve_current_user()
    communities = get_services().registry.list_user_communities(user.id)
    return {"communities": community_read_many_schema.dump(communities)}, 200


@communities_bp.get("/<community_id>")
@jwt_required()
@swag_from({"tags": ["Communities"], "summary": "Get community details", "responses": {200: {}, 403: {}, 404: {}}})
def get_community(community_id):
    community = _member_community(community_id)
    return {"community": community_read_schema.dump(community)}, 200


@communities_bp.get("/<community_id>/polls")
@jwt_required()
@swag_from({"tags": ["Polls"], "summary": "List a community's polls, newest first", "responses": {200: {}, 403: {}, 404: {}}})
def list_community_polls(community_id):
    _member_community(community_id)
    polls = get_services().polls.list_community_polls(community_id)
    return {"polls": poll_read_many_schema.dump(polls)}, 200


@communities_bp.post("/<community_id>/polls")
@jwt_required()
@swag_from({
    "tags": ["Polls"],
    "summary": "Create a poll (members only)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "question": {"type": "string", "example": "Repaint the fence?"},
                "type": {"type": "string", "enum": ["petition", "multiple_choice"]},
                "options": {"type": "array", "items": {"type": "string"}},
                "anonymous": {"type": "boolean", "example": True},
                "vote_goal": {"type": "integer", "example": 10},
            },
            "required": ["question", "type", "vote_goal"],
        },
    }],
    "responses": {
        201: {"description": "Created"},
        400: {"description": "Validation error"},
        403: {"description": "Not a member"},
        404: {"description": "Community not found"},
    },
})
def create_poll(community_id):
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(poll_create_schema, payload)

    poll = get_services().polls.create_poll(
        community_id,
        PollSpec(
            question=payload["question"],
            type=payload["type"],
            vote_goal=payload["vote_goal"],
            options=payload.get("options"),
            anonymous=payload.get("anonymous", True),
        ),
        resolve_current_user(),
    )
    current_app.logger.info("Poll %s created via API", poll.id)
    return {"poll": poll_read_schema.dump(poll)}, 201


def _member_community(community_id):
    community = get_services().registry.get_community(community_id)
    if not community.has_member(resolve_current_user().id):
        raise ForbiddenError()
    return community
