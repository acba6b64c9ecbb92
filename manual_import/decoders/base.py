from __future__ import annotations

from abc import ABC, abstractmethod

from manual_import.models.document import SourceDocument


class BaseDecoder(ABC):
    @abstractmethod
    def decode(self, document: SourceDocument, source_type: str) -> str:
        """Return the plain text of *document*.

        Raises ``DecodeFailureError`` when extraction fails and
        ``ImportTimeoutError`` when the extractor does not answer in time.
        """
        ...
