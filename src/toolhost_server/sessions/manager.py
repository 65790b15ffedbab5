"""ConversationManager for in-memory conversation bookkeeping.

This module provides the ConversationManager class which handles:
- Creating new conversations
- Listing conversations, newest first
- Retrieving a conversation by id
- Deleting conversations

Conversations live for the lifetime of the process only.
"""

import logging

from toolhost_server.errors import ConversationNotFoundError
from toolhost_server.sessions.conversation import Conversation

logger = logging.getLogger(__name__)


class ConversationManager:
    """Owns every live conversation, keyed by conversation id.

    The manager is shared by all requests. Each Conversation it hands out is
    independent; nothing in one conversation's transcript is visible to
    another.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}

    def create_conversation(self) -> Conversation:
        """Create and register a new, empty conversation.

        Returns:
            The newly created Conversation
        """
        conversation_id = Conversation.generate_conversation_id()
        while conversation_id in self._conversations:
            conversation_id = Conversation.generate_conversation_id()

        conversation = Conversation(conversation_id=conversation_id)
        self._conversations[conversation_id] = conversation

        logger.info(f"Created new conversation {conversation_id}")
        return conversation

    def list_conversations(self) -> list[Conversation]:
        """List all conversations, sorted by updated_at descending."""
        conversations = sorted(
            self._conversations.values(),
            key=lambda c: c.updated_at,
            reverse=True,
        )
        logger.debug(f"Listed {len(conversations)} conversations")
        return conversations

    def get_conversation(self, conversation_id: str) -> Conversation:
        """Get a specific conversation by ID.

        Args:
            conversation_id: The conversation ID to retrieve

        Returns:
            The Conversation object

        Raises:
            ConversationNotFoundError: If the conversation doesn't exist
        """
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(
                f"Conversation {conversation_id} not found",
                details={"conversation_id": conversation_id},
            )
        return conversation

    def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation.

        Raises:
            ConversationNotFoundError: If the conversation doesn't exist
        """
        if self._conversations.pop(conversation_id, None) is None:
            raise ConversationNotFoundError(
                f"Conversation {conversation_id} not found",
                details={"conversation_id": conversation_id},
            )
        logger.info(f"Deleted conversation {conversation_id}")
