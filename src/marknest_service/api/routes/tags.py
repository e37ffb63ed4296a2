"""Tag endpoints."""

import logging
from fastapi import APIRouter, Depends
from ...models.tag import TagCreate, TagResponse, TagListResponse
from ...models.requests import MessageResponse
from ...core.tag_manager import TagManager
from ...api.dependencies import get_user_id

router = APIRouter(prefix="/api/tags", tags=["tags"])
logger = logging.getLogger(__name__)

# Set by main.py after creating the app
tag_manager: TagManager = None


def set_managers(tag_mgr: TagManager):
    """Set the manager instances (called from main.py)."""
    globals()['tag_manager'] = tag_mgr


@router.get(
    "",
    response_model=TagListResponse,
    summary="List Tags",
    description="""
List every tag the caller owns, ordered by name. Tags are created on demand
when a document is saved with a new tag, or explicitly with `POST /api/tags`.

**Authorization**: Required (X-User-ID header)
    """,
)
async def list_tags(user_id: str = Depends(get_user_id)):
    """List tags."""
    tags = await tag_manager.list_tags(user_id)
    return TagListResponse(data=[TagResponse.from_model(t) for t in tags])


@router.post(
    "",
    response_model=TagResponse,
    status_code=201,
    summary="Create Tag",
    description="""
Create a tag (name at most 50 characters). Tags are unique per user by slug,
so "Python" and "python" clash.

**Request Example**:
```json
{"name": "javascript"}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        201: {"description": "Tag created"},
        422: {"description": "Invalid name or duplicate tag"},
    }
)
async def create_tag(data: TagCreate, user_id: str = Depends(get_user_id)):
    """Create a tag."""
    tag = await tag_manager.create_tag(user_id, data)
    return TagResponse.from_model(tag)


@router.delete(
    "/{tag_id}",
    response_model=MessageResponse,
    summary="Delete Tag",
    description="""
Delete a tag. It is detached from all documents and removed from their tag
lists.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Tag deleted"},
        404: {"description": "Tag not found"},
    }
)
async def delete_tag(tag_id: str, user_id: str = Depends(get_user_id)):
    """Delete a tag."""
    await tag_manager.delete_tag(tag_id, user_id)
    return MessageResponse(message="Tag deleted successfully")
