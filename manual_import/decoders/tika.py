from __future__ import annotations

import requests

from manual_import import __version__
from manual_import.decoders.base import BaseDecoder
from manual_import.exceptions import DecodeFailureError, ImportTimeoutError
from manual_import.models.document import DOCX, SourceDocument

_CONTENT_TYPES = {
    DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pdf": "application/pdf",
}


class TikaDecoder(BaseDecoder):
    """Text extraction through an Apache Tika compatible server (``PUT /tika``)."""

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "User-Agent": f"manual-import/{__version__}",
            "Accept": "text/plain",
        })

    def decode(self, document: SourceDocument, source_type: str) -> str:
        url = self._base_url + "/tika"
        headers = {"Content-Type": _CONTENT_TYPES[source_type]}
        try:
            response = self._session.put(
                url, data=document.data, headers=headers, timeout=self._timeout,
            )
        except requests.Timeout as exc:
            raise ImportTimeoutError(
                f"Text extraction for {document.filename} timed out after {self._timeout:g}s."
            ) from exc
        except requests.RequestException as exc:
            raise DecodeFailureError(
                f"Cannot connect to {self._base_url}. "
                "Check that the text extraction service is running."
            ) from exc

        if response.status_code in (415, 422):
            raise DecodeFailureError(
                f"Text extraction failed for {document.filename}: "
                f"the file could not be parsed ({response.status_code})."
            )
        if response.status_code >= 500:
            raise DecodeFailureError(
                f"Text extraction server error ({response.status_code}). "
                "Please try again later."
            )

        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise DecodeFailureError(
                f"Text extraction request failed ({response.status_code}) for {document.filename}."
            ) from exc

        response.encoding = response.encoding or "utf-8"
        return response.text
