"""Document storage capability used for receivable supporting documents"""

import logging
import uuid
from abc import ABC, abstractmethod

from accounts_receivable.config import settings

logger = logging.getLogger(__name__)


class DocumentStorage(ABC):
    """Stores uploaded files outside this service and hands back opaque references"""

    @abstractmethod
    def store(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        """Persist the file and return its reference"""

    @abstractmethod
    def delete(self, reference: str) -> None:
        """Remove the stored file behind a reference"""


class StubDocumentStorage(DocumentStorage):
    """
    Placeholder backend: generates references without persisting file bytes.

    Used until a document storage service is wired in.
    """

    def __init__(self, prefix: str | None = None):
        self.prefix = prefix or settings.document_reference_prefix

    def store(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        reference = f"{self.prefix}-{uuid.uuid4().hex}"
        logger.warning(
            "Document storage stub: file not persisted",
            extra={
                "document_reference": reference,
                "document_filename": filename,
                "size_bytes": len(content),
                "content_type": content_type,
            },
        )
        return reference

    def delete(self, reference: str) -> None:
        logger.warning("Document storage stub: nothing to delete", extra={"document_reference": reference})
