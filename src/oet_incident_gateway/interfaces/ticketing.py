"""Abstract interface for ticketing backend integrations."""

from collections.abc import Sequence
from typing import Protocol

from ..models.attachment import MaterializedImage, SoapFields
from ..models.result import SubmissionResult


class TicketingBackend(Protocol):
    """Abstract interface for the ticket-creating backend.

    Business failures reported by the backend are returned as
    :class:`SubmissionFailure` values, never raised.
    """

    async def submit(
        self,
        fields: SoapFields,
        attachments: Sequence[MaterializedImage],
    ) -> SubmissionResult:
        """
        Create a support ticket.

        Args:
            fields: Scalar ticket fields including credentials
            attachments: Images to embed in the request (may be empty)

        Returns:
            Success with the ticket id, or a classified failure

        Raises:
            ConfigurationError: If the backend endpoint is not configured
            httpx.HTTPError: For transport failures other than timeouts
        """
        ...
