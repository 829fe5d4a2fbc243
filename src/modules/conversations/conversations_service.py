# src/modules/conversations/conversations_service.py
"""Service layer for the admin conversation views."""

import logging
import math
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.schemas import AdminContext
from src.common.utils.errors import InvalidStateError
from src.common.utils.global_messages import GlobalMessages
from src.modules.media.media_service import image_signer

from . import conversation_store as store
from . import projection
from .schemas import (
    ConversationSummary, ConversationDetail, ConversationListResponse, Pagination,
    SetStateResponse, StateInfo, StateListResponse
)
from .state import ConversationState, badge_color, classify_severity, is_terminal, parse_state

logger = logging.getLogger(__name__)


def _log_corrupted(conversation, error: InvalidStateError) -> None:
    logger.error(
        "Conversation %s has corrupted stored state %r", conversation.id, error.value
    )


async def _summaries(session: AsyncSession, conversations) -> List[ConversationSummary]:
    stats = await store.get_message_stats(session, [c.id for c in conversations])
    summaries = []
    for conversation in conversations:
        message_count, last_message = stats.get(conversation.id, (0, None))
        try:
            summaries.append(projection.build_summary(conversation, message_count, last_message))
        except InvalidStateError as e:
            _log_corrupted(conversation, e)
            raise
    return summaries


async def summarize_conversation(
    session: AsyncSession,
    admin: AdminContext,
    clinic_id: str,
    conversation_id: str
) -> ConversationSummary:
    """Summary of one conversation of the clinic."""
    conversation = await store.get_conversation(session, conversation_id, clinic_id)
    return (await _summaries(session, [conversation]))[0]


async def get_conversation_detail(
    session: AsyncSession,
    admin: AdminContext,
    clinic_id: str,
    conversation_id: str
) -> ConversationDetail:
    """Conversation with all its messages; images are exposed as scoped links."""
    conversation = await store.get_conversation(session, conversation_id, clinic_id)
    messages = await store.list_messages(session, conversation.id)
    try:
        return projection.detail(conversation, messages, image_signer(conversation.clinic_id))
    except InvalidStateError as e:
        _log_corrupted(conversation, e)
        raise


async def list_conversation_summaries(
    session: AsyncSession,
    admin: AdminContext,
    clinic_id: str,
    page: int = 1,
    limit: int = 20
) -> ConversationListResponse:
    """Get a page of the clinic's conversations, most recently active first."""
    conversations, total = await store.list_conversations(session, clinic_id, page, limit)
    summaries = await _summaries(session, conversations)

    return ConversationListResponse(
        conversations=summaries,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0
        )
    )


async def update_conversation_state(
    session: AsyncSession,
    admin: AdminContext,
    clinic_id: str,
    conversation_id: str,
    new_state: str
) -> SetStateResponse:
    """
    Set a conversation's state on behalf of an operator, e.g. taking over a
    HANDOVER_HUMAN conversation or releasing it back to IDLE.
    """
    state = parse_state(new_state)
    before = await store.get_conversation(session, conversation_id, clinic_id)
    previous_state = before.current_state

    conversation = await store.set_state(session, conversation_id, state, clinic_id)
    changed = conversation.current_state != previous_state
    if changed:
        logger.info(
            "Admin %s set conversation %s state to %s",
            admin.user_id, conversation.id, conversation.current_state
        )

    summary = (await _summaries(session, [conversation]))[0]
    return SetStateResponse(
        success=True,
        message=GlobalMessages.STATE_UPDATED if changed else GlobalMessages.STATE_UNCHANGED,
        conversation=summary
    )


def list_states() -> StateListResponse:
    """Every known state with its dashboard classification."""
    states = []
    for state in ConversationState:
        severity = classify_severity(state)
        states.append(StateInfo(
            state=state,
            severity=severity,
            badge=badge_color(severity),
            is_terminal=is_terminal(state)
        ))
    return StateListResponse(states=states)
