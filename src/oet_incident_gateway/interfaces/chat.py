"""Abstract interface for chat platform integrations."""

from typing import Protocol

from ..models.attachment import ChatMessage


class ChatProvider(Protocol):
    """Abstract interface for chat platform integrations.

    The gateway only reads from the chat platform: it looks up a conversation
    and collects the images attached to it.
    """

    async def fetch_messages(self, conversation_id: str) -> list[ChatMessage]:
        """
        Retrieve the messages of a conversation.

        Args:
            conversation_id: Platform conversation identifier

        Returns:
            Messages in conversation order

        Raises:
            ConfigurationError: If the platform endpoint or token is not set
            AuthError: If the access token is rejected
            NotFoundError: If the conversation does not exist
            ServiceError: For any other failure once retries are exhausted
        """
        ...

    async def fetch_image_urls(self, conversation_id: str) -> list[str]:
        """
        Retrieve the URLs of every image attached to a conversation.

        Args:
            conversation_id: Platform conversation identifier

        Returns:
            Image URLs, message order then attachment order

        Raises:
            Same as :meth:`fetch_messages`
        """
        ...
