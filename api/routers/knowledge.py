"""Knowledge Base Router - owner-scoped study material."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.dependencies import get_db_dependency, get_invoker, get_user_id
from api.models import KnowledgeItemRequest, KnowledgeItemResponse, KnowledgeListResponse
from database.operations import delete_knowledge_item, get_knowledge_item, list_knowledge_items
from flows.knowledge import add_to_knowledge_base, update_knowledge_base_item
from flows.schemas import FlowError
from utils.errors import NotFoundError, handle_errors
from utils.monitoring import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/knowledge", tags=["Knowledge Base"])

ITEM_NOT_FOUND = "That knowledge base item could not be found."


@router.get("", response_model=KnowledgeListResponse)
@handle_errors(raise_on_error=True)
def list_items(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_dependency)
):
    """All items for the current user, newest first."""
    items = list_knowledge_items(db, user_id)
    return KnowledgeListResponse(
        items=[KnowledgeItemResponse.model_validate(item.to_dict()) for item in items]
    )


@router.post("")
async def add_item(
    request: KnowledgeItemRequest,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_dependency),
    invoker=Depends(get_invoker)
):
    """
    Summarize the material and add it to the knowledge base.

    Returns the stored item, or a flow error when no summary could be made.
    """
    result = await add_to_knowledge_base(
        db,
        user_id,
        document_name=request.document_name,
        document_content=request.document_content,
        media_data_uri=request.media_data_uri,
        invoker=invoker,
    )
    if isinstance(result, FlowError):
        return result.to_wire()
    return result.to_dict()


@router.get("/{item_id}", response_model=KnowledgeItemResponse)
def get_item(
    item_id: str,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_dependency)
):
    item = get_knowledge_item(db, user_id, item_id)
    if item is None:
        raise NotFoundError(ITEM_NOT_FOUND, resource="knowledge_item")
    return KnowledgeItemResponse.model_validate(item.to_dict())


@router.put("/{item_id}")
async def update_item(
    item_id: str,
    request: KnowledgeItemRequest,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_dependency),
    invoker=Depends(get_invoker)
):
    """Edit an item; its summary is regenerated from the new content."""
    result = await update_knowledge_base_item(
        db,
        user_id,
        item_id,
        document_name=request.document_name,
        document_content=request.document_content,
        media_data_uri=request.media_data_uri,
        invoker=invoker,
    )
    if isinstance(result, FlowError):
        return result.to_wire()
    return result.to_dict()


@router.delete("/{item_id}")
def delete_item(
    item_id: str,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_dependency)
):
    if not delete_knowledge_item(db, user_id, item_id):
        raise NotFoundError(ITEM_NOT_FOUND, resource="knowledge_item")
    logger.info("Knowledge item deleted", item_id=item_id, user_id=user_id)
    return {"deleted": True, "id": item_id}
