"""Comment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.core.comment_manager import CommentManager
from app.dependencies import get_comment_manager
from app.schemas.comment import CommentCreate, CommentListResponse, CommentResponse

router = APIRouter(prefix="/api", tags=["comments"])


@router.get("/requests/{request_id}/comments", response_model=CommentListResponse)
async def list_comments(
    request_id: UUID,
    manager: CommentManager = Depends(get_comment_manager),
) -> CommentListResponse:
    """Comments on a request, oldest first."""
    comments = await manager.list_comments(request_id)
    return CommentListResponse(
        comments=[CommentResponse.model_validate(c) for c in comments],
        total=len(comments),
    )


@router.post(
    "/requests/{request_id}/comments",
    status_code=status.HTTP_201_CREATED,
    response_model=CommentResponse,
)
async def add_comment(
    request_id: UUID,
    data: CommentCreate,
    manager: CommentManager = Depends(get_comment_manager),
) -> CommentResponse:
    """Add a comment to a request."""
    comment = await manager.add_comment(request_id, data.comment)
    return CommentResponse.model_validate(comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: UUID,
    manager: CommentManager = Depends(get_comment_manager),
) -> Response:
    """Delete a comment (author or admin)."""
    await manager.delete_comment(comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
