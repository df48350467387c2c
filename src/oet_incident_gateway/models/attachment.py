"""Data models for chat attachments, materialized images and SOAP fields."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChatAttachment:
    """A file reference attached to a chat message."""

    file_type: str
    data_url: str | None = None
    file_url: str | None = None
    file_size: int | None = None

    @property
    def url(self) -> str | None:
        """Preferred download location (``data_url`` wins over ``file_url``)."""
        return self.data_url or self.file_url

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> "ChatAttachment":
        size = raw.get("file_size")
        return cls(
            file_type=str(raw.get("file_type") or ""),
            data_url=raw.get("data_url") or None,
            file_url=raw.get("file_url") or None,
            file_size=size if isinstance(size, int) else None,
        )


@dataclass(frozen=True)
class ChatMessage:
    """A message from a chat conversation, reduced to its attachments."""

    message_id: str
    attachments: tuple[ChatAttachment, ...] = ()

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> "ChatMessage":
        attachments = raw.get("attachments") or []
        return cls(
            message_id=str(raw.get("id", "")),
            attachments=tuple(
                ChatAttachment.from_payload(a) for a in attachments if isinstance(a, dict)
            ),
        )


@dataclass(frozen=True)
class MaterializedImage:
    """An image downloaded and re-encoded inline as a data URI."""

    filename: str
    content_type: str
    data_uri: str  # data:<content_type>;base64,<payload>
    size: int  # decoded bytes
    source_url: str

    @property
    def base64_payload(self) -> str:
        """The base64 body without the ``data:...;base64,`` prefix."""
        _, _, payload = self.data_uri.partition(",")
        return payload


@dataclass(frozen=True)
class SoapAttachmentItem:
    """Wire shape of one ``dat_filexx`` item."""

    file: str
    fil_sizexx: str
    nom_filexx: str
    tip_attach: str


@dataclass(frozen=True)
class SoapFields:
    """The scalar fields of the ``setSoport`` operation."""

    nom_usulog: str
    pwd_usulog: str
    nom_usuari: str
    ema_usuari: str
    tex_messag: str
    asu_messag: str
    tel_usuari: str
    nit_transp: str
    id_project: str
