from .community import Community, CommunityMember, AuthorityEmail  # noqa: F401
from .polls import Poll  # noqa: F401
from .option import PollOption  # noqa: F401
from .vote import PollVoter, VoteDetail  # noqa: F401
from .comment import Comment  # noqa: F401

# Import ALL models so SQLAlchemy registers them

__all__ = [
    "Community",
    "CommunityMember",
    "AuthorityEmail",
    "Poll",
    "PollOption",
    "PollVoter",
    "VoteDetail",
    "Comment",
]
