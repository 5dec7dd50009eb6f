"""Attachment domain service."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import structlog

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import Attachment as AttachmentEntity, User
from ledgerbook.domain.errors import NotFoundError, ValidationError, transaction_not_found
from ledgerbook.domain.user import require_privileged
from ledgerbook.utils.text import safe_file_name

logger = structlog.get_logger(__name__)

MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024
SIGNED_URL_SECONDS = 600


class BlobStore(ABC):
    """File storage holding uploaded attachments."""

    @abstractmethod
    def upload(self, path: str, content: bytes, mime_type: Optional[str] = None) -> None:
        """Store ``content`` under ``path``."""
        pass

    @abstractmethod
    def signed_url(self, path: str, expires_in: int) -> str:
        """Return a temporary URL for ``path`` valid for ``expires_in`` seconds."""
        pass


class LocalBlobStore(BlobStore):
    """Blob store on the local filesystem; URLs are plain file URIs."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise ValidationError(f"Invalid storage path '{path}'")
        return target

    def upload(self, path: str, content: bytes, mime_type: Optional[str] = None) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def signed_url(self, path: str, expires_in: int) -> str:
        target = self._resolve(path)
        if not target.exists():
            raise NotFoundError(f"Stored file '{path}' not found")
        return target.as_uri()


def build_storage_path(
    user_id: int, transaction_id: int, filename: str, timestamp_ms: int
) -> str:
    """Build the blob path of an upload: ``{user}/{tx}/{ts}-{safe name}``."""
    return f"{user_id}/{transaction_id}/{timestamp_ms}-{safe_file_name(filename)}"


def resolve_link(attachment: AttachmentEntity, blob_store: Optional[BlobStore]) -> str:
    """Return the URL to open an attachment.

    Linked attachments return their external URL; stored ones get a
    short-lived signed URL.

    Raises:
        ValidationError: If the attachment has neither a path nor a URL, or
            a stored file is requested without a blob store
    """
    if attachment.external_url:
        return attachment.external_url
    if not attachment.storage_path:
        raise ValidationError(f"Attachment {attachment.id} has no file or link")
    if blob_store is None:
        raise ValidationError("No file storage configured to open stored attachments")
    return blob_store.signed_url(attachment.storage_path, SIGNED_URL_SECONDS)


class AttachmentService:
    """Service for attaching receipts and documents to transactions."""

    def __init__(self, db: Database, blob_store: Optional[BlobStore] = None):
        """Initialize attachment service.

        Args:
            db: Database instance
            blob_store: File storage for uploads; only links work without one
        """
        self.db = db
        self.blob_store = blob_store

    def add_attachment(
        self,
        transaction_id: int,
        acting_user: Optional[User],
        original_name: str,
        storage_path: Optional[str] = None,
        external_url: Optional[str] = None,
        mime_type: Optional[str] = None,
        size_bytes: Optional[int] = None,
    ) -> int:
        """Record an attachment that is either stored or linked.

        Args:
            transaction_id: Owning transaction
            acting_user: User performing the operation
            original_name: File name as uploaded
            storage_path: Blob store path (exclusive with external_url)
            external_url: Link to an external file (exclusive with storage_path)
            mime_type: Optional content type
            size_bytes: Optional size, at most 5 MiB

        Returns:
            Attachment ID

        Raises:
            ValidationError: If not exactly one location is given or the file is too big
            NotFoundError: If the transaction does not exist
        """
        require_privileged(acting_user)
        if bool(storage_path) == bool(external_url):
            raise ValidationError("Give exactly one of a storage path or an external URL")
        if size_bytes is not None and size_bytes > MAX_ATTACHMENT_BYTES:
            raise ValidationError("File too large. Limit: 5 MB")
        if self.db.get_transaction(transaction_id) is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        attachment_id = self.db.create_attachment(
            transaction_id=transaction_id,
            original_name=original_name or "arquivo",
            storage_path=storage_path,
            external_url=external_url,
            mime_type=mime_type,
            size_bytes=size_bytes,
        )
        logger.info("attachment_added", transaction_id=transaction_id, attachment_id=attachment_id)
        return attachment_id

    def upload_attachment(
        self,
        transaction_id: int,
        acting_user: Optional[User],
        filename: str,
        content: bytes,
        timestamp_ms: int,
        mime_type: Optional[str] = None,
    ) -> int:
        """Upload a file to the blob store and record it.

        Raises:
            ValidationError: If the file is too big or no blob store is configured
        """
        user = require_privileged(acting_user)
        if self.blob_store is None:
            raise ValidationError("No file storage configured")
        if len(content) > MAX_ATTACHMENT_BYTES:
            raise ValidationError("File too large. Limit: 5 MB")
        if self.db.get_transaction(transaction_id) is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        path = build_storage_path(user.id, transaction_id, filename, timestamp_ms)
        self.blob_store.upload(path, content, mime_type)
        return self.add_attachment(
            transaction_id,
            user,
            original_name=filename,
            storage_path=path,
            mime_type=mime_type,
            size_bytes=len(content),
        )

    def list_attachments(self, transaction_id: int) -> list[AttachmentEntity]:
        """List attachments of a transaction."""
        return self.db.list_attachments(transaction_id)

    def link_for(self, attachment_id: int) -> str:
        """Return the URL of an attachment.

        Raises:
            NotFoundError: If the attachment does not exist
        """
        attachment = self.db.get_attachment(attachment_id)
        if attachment is None:
            raise NotFoundError(f"Attachment {attachment_id} not found")
        return resolve_link(attachment, self.blob_store)
