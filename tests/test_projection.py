"""
Tests for the dashboard read projection.
Uses detached model instances, no database.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm.attributes import set_committed_value

from src.common.utils.errors import InvalidStateError
from src.models.models import Conversation, Message
from src.modules.conversations.projection import build_summary, detail, summarize
from src.modules.conversations.state import ConversationState, Severity

T0 = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def make_conversation(state="COLLECTING_PATIENT_DATA", **kwargs):
    return Conversation(
        id=uuid.uuid4(),
        clinic_id=uuid.uuid4(),
        user_phone="+33612345678",
        current_state=state,
        created_at=T0,
        updated_at=T0 + timedelta(minutes=5),
        **kwargs
    )


def make_message(role, content, minutes, **kwargs):
    return Message(
        id=uuid.uuid4(),
        role=role,
        content=content,
        created_at=T0 + timedelta(minutes=minutes),
        **kwargs
    )


def fake_signer(file_path):
    return f"/clinic/c/admin/images/signed-{len(file_path)}?token=abc"


def test_summary_example():
    conversation = make_conversation()
    messages = [
        make_message("user", "Bonjour", 1),
        make_message("assistant", "Bonjour, comment puis-je vous aider ?", 2),
    ]

    summary = summarize(conversation, messages)

    assert summary.id == str(conversation.id)
    assert summary.user_phone == "+33612345678"
    assert summary.current_state == ConversationState.COLLECTING_PATIENT_DATA
    assert summary.severity == Severity.ATTENTION
    assert summary.badge == "warning"
    assert summary.message_count == 2
    assert summary.last_message_preview == "Bonjour, comment puis-je vous aider ?"
    assert summary.updated_at == T0 + timedelta(minutes=5)


def test_summary_without_messages_uses_sentinel():
    summary = summarize(make_conversation("IDLE"), [])
    assert summary.message_count == 0
    assert summary.last_message_preview is None
    assert summary.model_dump()["last_message_preview"] is None


def test_summary_of_empty_message_is_empty_string():
    messages = [make_message("user", "", 1, media_type="image", file_path="x/card.jpg")]
    summary = summarize(make_conversation(), messages)
    assert summary.last_message_preview == ""


def test_summary_uses_latest_by_created_at():
    messages = [
        make_message("user", "Second", 2),
        make_message("assistant", "First", 1),
    ]
    assert summarize(make_conversation(), messages).last_message_preview == "Second"


def test_summary_from_message_stats():
    latest = make_message("assistant", "A demain", 7)
    summary = build_summary(make_conversation(), 12, latest)
    assert summary.message_count == 12
    assert summary.last_message_preview == "A demain"

    empty = build_summary(make_conversation(), 0, None)
    assert empty.last_message_preview is None


def test_summary_truncates_preview():
    long_text = "Je souhaiterais prendre rendez-vous " * 10
    summary = summarize(make_conversation(), [make_message("user", long_text, 1)], preview_length=20)
    assert summary.last_message_preview == long_text[:20] + "..."


def test_handover_summary_is_danger():
    summary = summarize(make_conversation("HANDOVER_HUMAN"), [])
    assert summary.severity == Severity.DANGER
    assert summary.badge == "danger"


def test_corrupted_state_is_reported():
    conversation = make_conversation()
    set_committed_value(conversation, "current_state", "BOGUS_STATE")

    with pytest.raises(InvalidStateError):
        summarize(conversation, [])
    with pytest.raises(InvalidStateError):
        detail(conversation, [], fake_signer)


def test_detail_orders_messages_and_keeps_metadata():
    conversation = make_conversation("COMPLETED", detected_language="fr")
    messages = [
        make_message("assistant", "Votre rendez-vous est confirmé.", 3),
        make_message("user", "Bonjour", 1),
        make_message("assistant", "Bonjour !", 2),
    ]

    view = detail(conversation, messages, fake_signer)

    assert view.current_state == ConversationState.COMPLETED
    assert view.severity == Severity.SUCCESS
    assert view.detected_language == "fr"
    assert [m.content for m in view.messages] == [
        "Bonjour", "Bonjour !", "Votre rendez-vous est confirmé."
    ]
    assert [m.role for m in view.messages] == ["user", "assistant", "assistant"]


def test_detail_scopes_image_links():
    storage_path = "/srv/app/uploads/images/clinic-1/carte-vitale.jpg"
    messages = [
        make_message("user", "Voici ma carte", 1, media_type="image", file_path=storage_path),
        make_message("user", "Et un document", 2, media_type="document", file_path="/srv/app/uploads/doc.pdf"),
        make_message("assistant", "Merci", 3),
    ]

    view = detail(make_conversation(), messages, fake_signer)

    image, document, text_only = view.messages
    assert image.image_url == fake_signer(storage_path)
    assert document.image_url is None
    assert text_only.image_url is None
    assert "/srv/app" not in view.model_dump_json()


def test_projection_does_not_mutate_inputs():
    conversation = make_conversation()
    messages = [make_message("user", "Bonjour", 1)]
    before = (conversation.current_state, conversation.updated_at, messages[0].content)

    summarize(conversation, messages)
    detail(conversation, messages, fake_signer)

    assert (conversation.current_state, conversation.updated_at, messages[0].content) == before
