class GlobalMessages:
    # Auth Messages
    INVALID_CREDENTIALS = "Could not validate credentials. Please log in again."
    CLINIC_ACCESS_DENIED = "Access denied: you do not have access to this clinic."
    MEDIA_ACCESS_DENIED = "Access denied: media link is invalid or expired."

    # Conversation Messages
    CONVERSATION_NOT_FOUND = "Conversation not found."
    STATE_UPDATED = "Conversation state updated."
    STATE_UNCHANGED = "Conversation state unchanged."
    CORRUPTED_STATE = "Conversation has a stored state outside the known states."
    STORE_UNAVAILABLE = "Conversation store is unavailable. Please retry later."

    # Media Messages
    IMAGE_NOT_FOUND = "Image not found."
