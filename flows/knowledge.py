"""
Knowledge base service: summarize on add/edit, then persist.

A summarization failure is returned as a ``FlowError`` and nothing is
stored, so the knowledge base never holds an item without a summary.
"""

from typing import Optional, Union

from sqlalchemy.orm import Session

from database.models import KnowledgeItem
from database.operations import get_knowledge_item, save_knowledge_item
from flows.invoker import ModelInvoker
from flows.schemas import FlowError
from flows.summarize import summarize_document
from utils.errors import FlowInputError, NotFoundError
from utils.monitoring import get_logger

logger = get_logger(__name__)


def _check_name(document_name: str):
    if not document_name or not document_name.strip():
        raise FlowInputError("Document name cannot be empty.", field="documentName")


async def add_to_knowledge_base(
    db: Session,
    user_id: str,
    document_name: str,
    document_content: str = "",
    media_data_uri: Optional[str] = None,
    invoker: Optional[ModelInvoker] = None,
) -> Union[KnowledgeItem, FlowError]:
    """Summarize new material and store it as a knowledge item."""
    _check_name(document_name)

    result = await summarize_document(
        {"document_content": document_content, "photo_data_uri": media_data_uri},
        invoker=invoker,
    )
    if isinstance(result, FlowError):
        return result

    item = save_knowledge_item(
        db,
        user_id,
        document_name=document_name.strip(),
        document_content=document_content,
        media_data_uri=media_data_uri,
        summary=result.summary,
    )
    logger.info("Knowledge item added", item_id=item.id, user_id=user_id)
    return item


async def update_knowledge_base_item(
    db: Session,
    user_id: str,
    item_id: str,
    document_name: str,
    document_content: str = "",
    media_data_uri: Optional[str] = None,
    invoker: Optional[ModelInvoker] = None,
) -> Union[KnowledgeItem, FlowError]:
    """Edit an item and regenerate its summary."""
    if get_knowledge_item(db, user_id, item_id) is None:
        raise NotFoundError("That knowledge base item could not be found.", resource="knowledge_item")
    _check_name(document_name)

    result = await summarize_document(
        {"document_content": document_content, "photo_data_uri": media_data_uri},
        invoker=invoker,
    )
    if isinstance(result, FlowError):
        return result

    item = save_knowledge_item(
        db,
        user_id,
        item_id=item_id,
        document_name=document_name.strip(),
        document_content=document_content,
        media_data_uri=media_data_uri,
        summary=result.summary,
    )
    logger.info("Knowledge item updated", item_id=item.id, user_id=user_id)
    return item
