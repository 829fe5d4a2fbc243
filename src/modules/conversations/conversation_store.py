# src/modules/conversations/conversation_store.py
"""
Conversation store: the narrow persistence contract shared by the WhatsApp
dialogue engine (writes) and the admin dashboard (reads).

Every write commits its own unit of work. Database connectivity failures are
reported as StoreUnavailableError; retrying is the caller's decision.
"""

import functools
import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy import and_, desc, func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.utils.errors import (
    ClinicNotFoundError, ConversationNotFoundError, InvalidMessageError, InvalidStateError,
    StoreUnavailableError
)
from src.common.utils.global_functions import next_timestamp, parse_uuid, utcnow
from src.models.models import Conversation, Message, MessageRole, MediaType
from .state import ConversationState, parse_state

logger = logging.getLogger(__name__)

IdLike = Union[str, UUID]


def _translate_store_errors(func_):
    """Report lost connections and unreachable databases as StoreUnavailableError."""
    @functools.wraps(func_)
    async def wrapper(*args, **kwargs):
        try:
            return await func_(*args, **kwargs)
        except (OperationalError, InterfaceError, OSError) as e:
            logger.error("Conversation store unavailable during %s: %s", func_.__name__, e)
            raise StoreUnavailableError(str(e)) from e
    return wrapper


async def _load_conversation(
    session: AsyncSession,
    conversation_id: IdLike,
    clinic_id: Optional[IdLike] = None
) -> Conversation:
    conv_id = parse_uuid(conversation_id)
    if conv_id is None:
        raise ConversationNotFoundError(conversation_id)

    query = select(Conversation).where(Conversation.id == conv_id)
    if clinic_id is not None:
        clinic_uuid = parse_uuid(clinic_id)
        if clinic_uuid is None:
            raise ConversationNotFoundError(conversation_id)
        query = query.where(Conversation.clinic_id == clinic_uuid)

    # Always reflect what is stored, not a stale identity-map copy
    result = await session.execute(query.execution_options(populate_existing=True))
    conversation = result.scalar_one_or_none()
    if conversation is None:
        raise ConversationNotFoundError(conversation_id)
    return conversation


@_translate_store_errors
async def get_conversation(
    session: AsyncSession,
    conversation_id: IdLike,
    clinic_id: Optional[IdLike] = None
) -> Conversation:
    """Get a conversation, optionally scoped to one clinic."""
    return await _load_conversation(session, conversation_id, clinic_id)


@_translate_store_errors
async def list_messages(session: AsyncSession, conversation_id: IdLike) -> List[Message]:
    """List a conversation's messages, oldest first."""
    conv_id = parse_uuid(conversation_id)
    if conv_id is None:
        return []
    result = await session.execute(
        select(Message)
        .where(Message.conversation_id == conv_id)
        .order_by(Message.created_at, Message.id)
    )
    return list(result.scalars().all())


@_translate_store_errors
async def get_message_stats(
    session: AsyncSession,
    conversation_ids: Iterable[IdLike]
) -> Dict[UUID, Tuple[int, Optional[Message]]]:
    """
    Message count and latest message for each conversation, without loading
    whole histories. Conversations without messages map to (0, None).
    """
    conv_ids = [conv_id for conv_id in map(parse_uuid, conversation_ids) if conv_id is not None]
    if not conv_ids:
        return {}

    count_result = await session.execute(
        select(Message.conversation_id, func.count(Message.id))
        .where(Message.conversation_id.in_(conv_ids))
        .group_by(Message.conversation_id)
    )
    counts = {conv_id: count for conv_id, count in count_result.all()}

    latest_at = (
        select(Message.conversation_id, func.max(Message.created_at).label("latest_at"))
        .where(Message.conversation_id.in_(conv_ids))
        .group_by(Message.conversation_id)
        .subquery()
    )
    latest_result = await session.execute(
        select(Message)
        .join(latest_at, and_(
            Message.conversation_id == latest_at.c.conversation_id,
            Message.created_at == latest_at.c.latest_at
        ))
        .order_by(Message.id)
    )
    latest = {message.conversation_id: message for message in latest_result.scalars().all()}

    return {conv_id: (counts.get(conv_id, 0), latest.get(conv_id)) for conv_id in conv_ids}


@_translate_store_errors
async def set_state(
    session: AsyncSession,
    conversation_id: IdLike,
    new_state: Union[str, ConversationState],
    clinic_id: Optional[IdLike] = None
) -> Conversation:
    """
    Move a conversation to a new state.

    The value is validated before anything is read or written, so a rejected
    value leaves the stored state untouched. Setting the current state again is
    a no-op and does not touch updated_at.

    Raises:
        InvalidStateError: new_state is not one of the known states.
        ConversationNotFoundError: the conversation does not resolve.
    """
    try:
        state = parse_state(new_state)
    except InvalidStateError:
        logger.warning("Rejected state %r for conversation %s", new_state, conversation_id)
        raise

    conversation = await _load_conversation(session, conversation_id, clinic_id)
    previous = conversation.current_state
    if previous == state.value:
        return conversation

    conversation.current_state = state
    conversation.updated_at = next_timestamp(conversation.updated_at)
    await session.commit()

    logger.info(
        "Conversation %s state transition %s -> %s", conversation.id, previous, state.value
    )
    return conversation


@_translate_store_errors
async def get_or_create_conversation(
    session: AsyncSession,
    clinic_id: IdLike,
    user_phone: str
) -> Conversation:
    """
    Get the clinic's conversation for a phone number, creating it in IDLE on first contact.

    Raises:
        ClinicNotFoundError: the clinic id is malformed or unknown.
    """
    clinic_uuid = parse_uuid(clinic_id)
    if clinic_uuid is None:
        raise ClinicNotFoundError(clinic_id)

    query = select(Conversation).where(
        Conversation.clinic_id == clinic_uuid,
        Conversation.user_phone == user_phone
    )
    existing = (await session.execute(query)).scalar_one_or_none()
    if existing:
        return existing

    now = utcnow()
    conversation = Conversation(
        clinic_id=clinic_uuid,
        user_phone=user_phone,
        current_state=ConversationState.IDLE,
        context_data={},
        created_at=now,
        updated_at=now,
    )
    session.add(conversation)
    try:
        await session.commit()
    except IntegrityError:
        # Another request created it first, or the clinic does not exist
        await session.rollback()
        existing = (await session.execute(query)).scalar_one_or_none()
        if existing is None:
            raise ClinicNotFoundError(clinic_id)
        return existing

    logger.info("Created conversation %s for clinic %s", conversation.id, clinic_uuid)
    return conversation


def _parse_role(role: Union[str, MessageRole]) -> MessageRole:
    if isinstance(role, MessageRole):
        return role
    try:
        return MessageRole(role)
    except ValueError:
        raise InvalidMessageError(f"Invalid message role: {role!r}")


def _parse_media_type(media_type: Union[str, MediaType, None]) -> Optional[MediaType]:
    if media_type is None or isinstance(media_type, MediaType):
        return media_type
    try:
        return MediaType(media_type)
    except ValueError:
        raise InvalidMessageError(f"Invalid media type: {media_type!r}")


@_translate_store_errors
async def append_message(
    session: AsyncSession,
    conversation_id: IdLike,
    role: Union[str, MessageRole],
    content: Optional[str] = "",
    media_type: Union[str, MediaType, None] = None,
    file_path: Optional[str] = None
) -> Message:
    """
    Append a message to a conversation and advance its updated_at.

    created_at is strictly increasing within a conversation, so display order
    by created_at is append order.
    """
    message_role = _parse_role(role)
    message_media = _parse_media_type(media_type)
    if message_media == MediaType.IMAGE and not file_path:
        raise InvalidMessageError("Image messages require a stored file")

    conversation = await _load_conversation(session, conversation_id)
    created_at = next_timestamp(conversation.updated_at)

    message = Message(
        conversation_id=conversation.id,
        role=message_role.value,
        content=content or "",
        media_type=message_media.value if message_media else None,
        file_path=file_path,
        created_at=created_at,
    )
    session.add(message)
    conversation.updated_at = created_at
    await session.commit()
    return message


@_translate_store_errors
async def set_detected_language(
    session: AsyncSession,
    conversation_id: IdLike,
    language: Optional[str]
) -> Conversation:
    """Record the inferred language. Not a conversation activity, updated_at is left alone."""
    conversation = await _load_conversation(session, conversation_id)
    conversation.detected_language = language
    await session.commit()
    return conversation


@_translate_store_errors
async def list_conversations(
    session: AsyncSession,
    clinic_id: IdLike,
    page: int = 1,
    limit: int = 20
) -> Tuple[List[Conversation], int]:
    """Get one page of a clinic's conversations, most recently active first, with the total count."""
    clinic_uuid = parse_uuid(clinic_id)
    if clinic_uuid is None:
        return [], 0

    result = await session.execute(
        select(Conversation)
        .where(Conversation.clinic_id == clinic_uuid)
        .order_by(desc(Conversation.updated_at))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    conversations = list(result.scalars().all())

    count_result = await session.execute(
        select(func.count(Conversation.id)).where(Conversation.clinic_id == clinic_uuid)
    )
    total = count_result.scalar() or 0
    return conversations, total


@_translate_store_errors
async def delete_conversation(
    session: AsyncSession,
    conversation_id: IdLike,
    clinic_id: Optional[IdLike] = None
) -> None:
    """Delete a conversation together with its messages."""
    conversation = await _load_conversation(session, conversation_id, clinic_id)
    await session.delete(conversation)
    await session.commit()
    logger.info("Deleted conversation %s", conversation.id)
