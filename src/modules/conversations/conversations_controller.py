# src/modules/conversations/conversations_controller.py
"""Conversations controller with admin dashboard routes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_clinic_access
from src.auth.schemas import AdminContext
from src.common.database.database import get_db_session
from src.common.utils.errors import (
    ConversationNotFoundError, InvalidStateError, StoreUnavailableError
)
from src.common.utils.global_messages import GlobalMessages

from . import conversations_service as service
from .schemas import (
    ConversationSummary, ConversationDetail, ConversationListResponse,
    SetStateRequest, SetStateResponse, StateListResponse
)

router = APIRouter(prefix="/clinic/{clinic_id}/admin", tags=["Conversations"])


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    clinic_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
    admin: AdminContext = Depends(require_clinic_access)
):
    """Get the clinic's conversations, most recently active first."""
    try:
        return await service.list_conversation_summaries(db, admin, clinic_id, page, limit)
    except InvalidStateError:
        raise HTTPException(status_code=500, detail=GlobalMessages.CORRUPTED_STATE)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=GlobalMessages.STORE_UNAVAILABLE)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    clinic_id: str,
    conversation_id: str,
    db: AsyncSession = Depends(get_db_session),
    admin: AdminContext = Depends(require_clinic_access)
):
    """Get a conversation with all its messages."""
    try:
        return await service.get_conversation_detail(db, admin, clinic_id, conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail=GlobalMessages.CONVERSATION_NOT_FOUND)
    except InvalidStateError:
        raise HTTPException(status_code=500, detail=GlobalMessages.CORRUPTED_STATE)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=GlobalMessages.STORE_UNAVAILABLE)


@router.get("/conversations/{conversation_id}/summary", response_model=ConversationSummary)
async def get_conversation_summary(
    clinic_id: str,
    conversation_id: str,
    db: AsyncSession = Depends(get_db_session),
    admin: AdminContext = Depends(require_clinic_access)
):
    """Get the list-view summary of one conversation."""
    try:
        return await service.summarize_conversation(db, admin, clinic_id, conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail=GlobalMessages.CONVERSATION_NOT_FOUND)
    except InvalidStateError:
        raise HTTPException(status_code=500, detail=GlobalMessages.CORRUPTED_STATE)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=GlobalMessages.STORE_UNAVAILABLE)


@router.put("/conversations/{conversation_id}/state", response_model=SetStateResponse)
async def set_conversation_state(
    clinic_id: str,
    conversation_id: str,
    request: SetStateRequest,
    db: AsyncSession = Depends(get_db_session),
    admin: AdminContext = Depends(require_clinic_access)
):
    """Set a conversation's state, e.g. to take over or release a human handover."""
    try:
        return await service.update_conversation_state(
            db, admin, clinic_id, conversation_id, request.state
        )
    except InvalidStateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail=GlobalMessages.CONVERSATION_NOT_FOUND)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail=GlobalMessages.STORE_UNAVAILABLE)


@router.get("/conversation-states", response_model=StateListResponse)
async def get_conversation_states(
    clinic_id: str,
    admin: AdminContext = Depends(require_clinic_access)
):
    """Get every conversation state with its badge classification."""
    return service.list_states()
