"""Database models."""

from app.models.approval_request import ApprovalRequest
from app.models.comment import Comment
from app.models.delegation import Delegation
from app.models.user import User

__all__ = [
    "User",
    "ApprovalRequest",
    "Delegation",
    "Comment",
]
