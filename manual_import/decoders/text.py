from __future__ import annotations

from manual_import.decoders.base import BaseDecoder
from manual_import.exceptions import DecodeFailureError
from manual_import.models.document import SourceDocument


class PlainTextDecoder(BaseDecoder):
    """For payloads that were already converted to text upstream."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def decode(self, document: SourceDocument, source_type: str) -> str:
        try:
            return document.data.decode(self.encoding)
        except UnicodeDecodeError as exc:
            raise DecodeFailureError(
                f"Cannot read {document.filename} as {self.encoding} text: {exc.reason}. "
                "Convert the document to plain text or configure a decoder_url."
            ) from exc
