from flask import Blueprint
from flasgger import swag_from
from flask_jwt_extended import jwt_required

from ...schemas.results import PollResultsSchema
from ...services import get_services
from ...services.results import compute_results

results_bp = Blueprint("results", __name__)
poll_results_schema = PollResultsSchema()


@results_bp.get("/<poll_id>/results")
@jwt_required()
@swag_from({
    "tags": ["Results"],
    "summary": "Ranked poll results",
    "description": (
        "Per-option counts and percentages (one decimal), ranked by votes with ties "
        "in option order, plus the winning option and consensus tier "
        "(Strong >= 60%, Moderate >= 50%, otherwise Mixed)."
    ),
    "responses": {200: {"description": "Results"}, 404: {"description": "Poll not found"}},
})
def poll_results(poll_id):
    poll = get_services().polls.get_poll(poll_id)
    outcome = compute_results(poll.options, poll.votes)

    return poll_results_schema.dump({
        "poll_id": poll.id,
        "question": poll.question,
        "status": poll.status,
        "vote_goal": poll.vote_goal,
        **outcome.to_dict(),
    }), 200
