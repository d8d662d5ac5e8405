"""Learning History Router."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.dependencies import get_db_dependency, get_user_id
from api.models import HistoryItemRequest, HistoryItemResponse, HistoryListResponse
from database.operations import list_history_items, save_history_item
from utils.errors import handle_errors

router = APIRouter(prefix="/history", tags=["Learning History"])


@router.get("", response_model=HistoryListResponse)
@handle_errors(raise_on_error=True)
def list_history(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_dependency)
):
    """Completed sessions, most recent first."""
    return HistoryListResponse(
        items=[HistoryItemResponse.model_validate(item.to_dict()) for item in list_history_items(db, user_id)]
    )


@router.post("", response_model=HistoryItemResponse)
@handle_errors(raise_on_error=True)
def save_history(
    request: HistoryItemRequest,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_dependency)
):
    """Record a completed session. Only the newest records per user are kept."""
    item = save_history_item(
        db,
        user_id,
        document_name=request.document_name,
        summary=request.summary,
        questions=request.questions,
        user_answers=request.user_answers,
        score=request.score,
        item_id=request.id,
    )
    return HistoryItemResponse.model_validate(item.to_dict())
