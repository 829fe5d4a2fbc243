# src/modules/conversations/projection.py
"""
Read projection: turns a stored conversation and its messages into the
display-ready shapes the admin dashboard renders.

Functions here only read their inputs. Image attachments are exposed through
the sign_image callable supplied by the caller for the current request.
"""

from typing import Callable, Iterable, Optional, Sequence

from src.common.config import settings
from src.common.utils.global_functions import as_utc
from src.models.models import Conversation, Message, MediaType
from .schemas import ConversationDetail, ConversationSummary, MessageView
from .state import badge_color, classify_severity, parse_state

ImageSigner = Callable[[str], str]


def _truncate(content: str, max_length: int) -> str:
    if len(content) > max_length:
        return content[:max_length] + "..."
    return content


def _ordered(messages: Iterable[Message]) -> Sequence[Message]:
    return sorted(messages, key=lambda m: as_utc(m.created_at))


def build_summary(
    conversation: Conversation,
    message_count: int,
    last_message: Optional[Message],
    preview_length: Optional[int] = None
) -> ConversationSummary:
    """
    Summarize a conversation from its message count and latest message.
    A conversation without messages has no preview at all, not an empty one.

    Raises:
        InvalidStateError: the stored state is outside the known states.
    """
    state = parse_state(conversation.current_state)
    severity = classify_severity(state)

    preview = None
    if last_message is not None:
        preview = _truncate(last_message.content or "", preview_length or settings.PREVIEW_MAX_LENGTH)

    return ConversationSummary(
        id=str(conversation.id),
        user_phone=conversation.user_phone,
        current_state=state,
        severity=severity,
        badge=badge_color(severity),
        message_count=message_count,
        last_message_preview=preview,
        updated_at=as_utc(conversation.updated_at),
    )


def summarize(
    conversation: Conversation,
    messages: Iterable[Message],
    preview_length: Optional[int] = None
) -> ConversationSummary:
    """Summarize a conversation for list views from its loaded messages."""
    ordered = _ordered(messages)
    last_message = ordered[-1] if ordered else None
    return build_summary(conversation, len(ordered), last_message, preview_length)


def _build_message_view(message: Message, sign_image: ImageSigner) -> MessageView:
    image_url = None
    if message.media_type == MediaType.IMAGE.value and message.file_path:
        image_url = sign_image(message.file_path)

    return MessageView(
        id=str(message.id),
        role=message.role,
        content=message.content or "",
        media_type=message.media_type,
        image_url=image_url,
        created_at=as_utc(message.created_at),
    )


def detail(
    conversation: Conversation,
    messages: Iterable[Message],
    sign_image: ImageSigner
) -> ConversationDetail:
    """
    Full conversation view with messages oldest first.

    Raises:
        InvalidStateError: the stored state is outside the known states.
    """
    state = parse_state(conversation.current_state)
    severity = classify_severity(state)

    return ConversationDetail(
        id=str(conversation.id),
        user_phone=conversation.user_phone,
        current_state=state,
        severity=severity,
        badge=badge_color(severity),
        detected_language=conversation.detected_language,
        created_at=as_utc(conversation.created_at),
        updated_at=as_utc(conversation.updated_at),
        messages=[_build_message_view(m, sign_image) for m in _ordered(messages)],
    )
