# src/models/models.py

import uuid
import enum

from sqlalchemy import (
    JSON, Boolean, Column, ForeignKey, Index, String, Text, DateTime, Uuid,
    UniqueConstraint, event, func,
)
from sqlalchemy.orm import declarative_base, relationship, validates

from src.common.utils.errors import InvalidMessageError
from src.modules.conversations.state import ConversationState, parse_state

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class MessageRole(enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MediaType(enum.Enum):
    IMAGE = "image"
    AUDIO = "audio"
    DOCUMENT = "document"


# ============================================================================
# CLINIC MODELS
# ============================================================================

class Clinic(Base):
    __tablename__ = "clinics"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    conversations = relationship(
        "Conversation", back_populates="clinic", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self):
        return f"<Clinic(id={self.id}, name={self.name})>"


# ============================================================================
# MESSAGING MODELS
# ============================================================================

class Conversation(Base):
    """
    A WhatsApp exchange between one phone number and a clinic's booking assistant.

    current_state is stored as the exact enumeration string so that a corrupted
    row can still be loaded and reported instead of failing inside the ORM.
    updated_at is maintained by the conversation store, not by the database:
    it only moves when a message is appended or the state changes.
    """
    __tablename__ = "conversations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    clinic_id = Column(Uuid(as_uuid=True), ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False)
    user_phone = Column(String(32), nullable=False)
    current_state = Column(String(40), nullable=False, default=ConversationState.IDLE.value)
    detected_language = Column(String(16), nullable=True)
    context_data = Column(JSON, nullable=True)  # Dialogue engine scratch data, never projected
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    clinic = relationship("Clinic", back_populates="conversations")
    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Message.created_at",
    )

    __table_args__ = (
        UniqueConstraint("clinic_id", "user_phone", name="uq_conversation_clinic_phone"),
        Index("idx_conversations_clinic", "clinic_id"),
        Index("idx_conversations_updated", "updated_at"),
    )

    @validates("current_state")
    def validate_current_state(self, key, value):
        return parse_state(value).value

    def __repr__(self):
        return f"<Conversation(id={self.id}, phone={self.user_phone}, state={self.current_state})>"


class Message(Base):
    """A single turn within a conversation. Append-only."""
    __tablename__ = "messages"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    conversation_id = Column(Uuid(as_uuid=True), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False, default="")
    media_type = Column(String(16), nullable=True)
    file_path = Column(String(500), nullable=True)  # Raw storage location, never projected
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    conversation = relationship("Conversation", back_populates="messages")

    __table_args__ = (
        Index("idx_messages_conversation", "conversation_id"),
        Index("idx_messages_conversation_created", "conversation_id", "created_at"),
    )

    def __repr__(self):
        return f"<Message(id={self.id}, role={self.role}, conversation={self.conversation_id})>"


@event.listens_for(Message, "before_update")
def _reject_message_update(mapper, connection, target):
    raise InvalidMessageError(f"Messages are append-only: {target.id}")
