# common/utils/errors.py
"""Error taxonomy shared by the conversation store, projection and media links."""

from typing import Any


class ConversationNotFoundError(ValueError):
    """The referenced conversation does not resolve."""

    def __init__(self, conversation_id: Any):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation not found: {conversation_id}")


class ClinicNotFoundError(ValueError):
    """The referenced clinic does not resolve."""

    def __init__(self, clinic_id: Any):
        self.clinic_id = clinic_id
        super().__init__(f"Clinic not found: {clinic_id}")


class InvalidStateError(ValueError):
    """A state value outside the conversation state enumeration."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid conversation state: {value!r}")


class InvalidMessageError(ValueError):
    """A message field outside its defined domain."""


class StoreUnavailableError(RuntimeError):
    """The conversation store could not be reached. Callers may retry with backoff."""


class MediaAccessError(ValueError):
    """A media link token is missing, expired or scoped to another resource."""
