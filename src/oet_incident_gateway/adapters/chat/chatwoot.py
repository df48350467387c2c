"""Chatwoot chat platform adapter.

This module implements the ChatProvider protocol against the Chatwoot REST
API. It only reads conversation messages to collect attached images.

Retry policy:
- Up to ``max_attempts`` attempts (default 3)
- Linear backoff of ``backoff_seconds * attempt`` between attempts (2 s, 4 s)
- Every failure is retried, including 401 and 404 responses
- The last failure is classified as AuthError, NotFoundError or ServiceError
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import httpx
import structlog

from ...config.schema import ChatwootConfig
from ...models.attachment import ChatMessage
from ...utils.async_helpers import (
    AuthError,
    ChatPlatformError,
    ConfigurationError,
    NotFoundError,
    ServiceError,
    create_linear_retry,
)
from ...utils.metrics import get_metrics

log = structlog.get_logger()

IMAGE_FILE_TYPE = "image"


def extract_image_urls(messages: list[ChatMessage]) -> list[str]:
    """Collect image attachment URLs from conversation messages.

    Args:
        messages: Messages in conversation order.

    Returns:
        URLs of every attachment whose ``file_type`` is ``image``, preferring
        ``data_url`` over ``file_url``; message order then attachment order.
    """
    urls: list[str] = []
    for message in messages:
        for attachment in message.attachments:
            if attachment.file_type == IMAGE_FILE_TYPE and attachment.url:
                urls.append(attachment.url)
    return urls


class ChatwootAdapter:
    """Chatwoot adapter implementing the ChatProvider protocol.

    Example:
        config = ChatwootConfig(base_url="https://chat.example.com", token="...")
        adapter = ChatwootAdapter(config)

        urls = await adapter.fetch_image_urls("33809")
    """

    def __init__(
        self,
        config: ChatwootConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Chatwoot adapter.

        Args:
            config: Chatwoot-specific configuration.
            client: Shared HTTP client. If None, one is created per call.
        """
        self._config = config
        self._client = client
        self._get_payload_with_retry = create_linear_retry(
            max_attempts=config.max_attempts,
            backoff_seconds=config.backoff_seconds,
        )(self._get_payload)

    def _messages_url(self, conversation_id: str) -> str:
        base_url = self._config.base_url.rstrip("/")
        return (
            f"{base_url}/api/v1/accounts/{self._config.account_id}"
            f"/conversations/{conversation_id}/messages"
        )

    def _require_configuration(self) -> None:
        if not self._config.token:
            raise ConfigurationError("Chatwoot token is not configured (chatwoot.token)")
        if not self._config.base_url:
            raise ConfigurationError("Chatwoot base URL is not configured (chatwoot.base_url)")

    async def _get_payload(self, url: str) -> Any:
        """Perform one GET attempt and decode the JSON body."""
        headers = {
            "api_access_token": self._config.token,
            "Content-Type": "application/json",
        }
        if self._client is not None:
            response = await self._client.get(url, headers=headers, timeout=self._config.timeout)
        else:
            async with httpx.AsyncClient(timeout=self._config.timeout) as client:
                response = await client.get(url, headers=headers)
        response.raise_for_status()
        return response.json()

    async def fetch_messages(self, conversation_id: str) -> list[ChatMessage]:
        """Retrieve the messages of a conversation.

        Args:
            conversation_id: Chatwoot conversation id.

        Returns:
            Parsed messages from the response ``payload``.

        Raises:
            ConfigurationError: If the base URL or token is not set.
            AuthError: On HTTP 401.
            NotFoundError: On HTTP 404.
            ServiceError: On any other failure after the last attempt.
        """
        self._require_configuration()
        url = self._messages_url(conversation_id)

        log.info(
            "chat_fetch_start",
            conversation_id=conversation_id,
            account_id=self._config.account_id,
        )

        try:
            data = await self._get_payload_with_retry(url)
        except Exception as e:
            error = self._classify(e)
            get_metrics().chat_fetch_errors.inc(labels={"kind": type(error).__name__})
            log.error(
                "chat_fetch_error",
                conversation_id=conversation_id,
                error_type=type(error).__name__,
                status_code=error.status_code,
                error=str(e),
            )
            raise error from e

        payload = data.get("payload", []) if isinstance(data, dict) else []
        messages = [ChatMessage.from_payload(m) for m in payload if isinstance(m, dict)]

        log.info(
            "chat_fetch_complete",
            conversation_id=conversation_id,
            message_count=len(messages),
        )
        return messages

    async def fetch_image_urls(self, conversation_id: str) -> list[str]:
        """Retrieve the URLs of every image attached to a conversation.

        Args:
            conversation_id: Chatwoot conversation id.

        Returns:
            Image URLs, rewritten onto ``base_url`` when they point at the
            configured public host.
        """
        messages = await self.fetch_messages(conversation_id)
        urls = [self.rewrite_public_url(u) for u in extract_image_urls(messages)]

        get_metrics().attachments_found.inc(len(urls))
        log.info("chat_images_found", conversation_id=conversation_id, image_count=len(urls))
        return urls

    def rewrite_public_url(self, url: str) -> str:
        """Point a public attachment URL at the internally reachable base URL.

        Args:
            url: Attachment URL as returned by Chatwoot.

        Returns:
            The URL with scheme and host replaced by ``base_url`` when its host
            is ``public_host`` (or a subdomain of it); otherwise unchanged.
        """
        public_host = self._config.public_host
        if not public_host or not self._config.base_url:
            return url

        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
        public_host = public_host.lower()
        if host != public_host and not host.endswith("." + public_host):
            return url

        rewritten = self._config.base_url.rstrip("/") + parsed.path
        if parsed.query:
            rewritten += "?" + parsed.query
        return rewritten

    @staticmethod
    def _classify(error: Exception) -> ChatPlatformError:
        """Map a failed attempt onto the chat platform error taxonomy."""
        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            if status == 401:
                return AuthError("Chatwoot token is invalid or expired", status_code=status)
            if status == 404:
                return NotFoundError("Conversation not found in Chatwoot", status_code=status)
            return ServiceError(
                f"Error fetching Chatwoot messages: {error}", status_code=status
            )
        return ServiceError(f"Error fetching Chatwoot messages: {error}")
