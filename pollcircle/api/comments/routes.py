from flask import Blueprint, request
from flasgger import swag_from
from flask_jwt_extended import jwt_required

from ...schemas.comment import CommentCreateSchema, CommentReadSchema
from ...services import get_services
from ...utils.identity import resolve_current_user
from ...utils.validation import validate_or_abort

comments_bp = Blueprint("comments", __name__)

comment_create_schema = CommentCreateSchema()
comment_read_schema = CommentReadSchema()
comment_read_many_schema = CommentReadSchema(many=True)


@comments_bp.post("/<poll_id>/comments")
@jwt_required()
@swag_from({
    "tags": ["Comments"],
    "summary": "Add a comment (anonymous unless disclose=true)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "content": {"type": "string", "example": "I think we should wait until spring."},
                "disclose": {"type": "boolean", "example": False},
            },
            "required": ["content"],
        },
    }],
    "responses": {201: {"description": "Created"}, 400: {"description": "Validation error"}, 404: {"description": "Poll not found"}},
})
def add_comment(poll_id):
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(comment_create_schema, payload)

    comment = get_services().comments.add_comment(
        poll_id,
        payload["content"],
        resolve_current_user(),
        disclose=payload.get("disclose", False),
    )
    return {"comment": comment_read_schema.dump(comment)}, 201


@comments_bp.get("/<poll_id>/comments")
@jwt_required()
@swag_from({"tags": ["Comments"], "summary": "List comments, newest first", "responses": {200: {}, 404: {}}})
def list_comments(poll_id):
    services = get_services()
    services.polls.get_poll(poll_id)
    comments = services.comments.list_comments(poll_id)
    return {"comments": comment_read_many_schema.dump(comments)}, 200
