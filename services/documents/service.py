"""Document text sources for invoice extraction.

Turns uploaded bytes or a fetched URL into text for the field extractor:
- PDFs via pypdf text extraction
- Images via Tesseract OCR
- Plain text decoded as UTF-8

Decoding problems never fail the upload: the file (or URL) name becomes the
text, and the extractor's defaults take over from there.

Based on pytesseract documentation:
https://github.com/madmaze/pytesseract
"""

import io
import logging
import os
from pathlib import PurePosixPath
from typing import Literal
from urllib.parse import urlparse

import httpx
import pytesseract
from PIL import Image
from pydantic import BaseModel
from pypdf import PdfReader
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from services.shared.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_URL_FILENAME = "invoice.pdf"
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp", ".tif", ".tiff"}
USER_AGENT = "Invoice-Assistant/1.0"


class DocumentText(BaseModel):
    """Text decoded from a document.

    Attributes:
        text: Decoded text (the file name when decoding was not possible)
        filename: Original file or URL name
        source: How the text was obtained
        error: Why decoding fell back to the file name, if it did
    """

    text: str
    filename: str
    source: Literal["pdf", "ocr", "text", "filename"]
    error: str | None = None


def filename_from_url(url: str) -> str:
    """Last path segment of a URL, ``invoice.pdf`` when there is none."""
    name = PurePosixPath(urlparse(url).path).name
    return name or DEFAULT_URL_FILENAME


class DocumentTextService:
    """Decodes uploaded or downloaded invoice documents into text."""

    def __init__(self, settings: Settings) -> None:
        """Initialize document text service.

        Args:
            settings: Application settings
        """
        self.settings = settings
        self._configure_tesseract()

    def _configure_tesseract(self) -> None:
        """Configure Tesseract command path from the TESSERACT_CMD environment variable."""
        tesseract_cmd = os.getenv("TESSERACT_CMD")
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def extract_text(
        self, content: bytes, filename: str, content_type: str | None = None
    ) -> DocumentText:
        """Decode an uploaded document.

        Args:
            content: Raw file bytes
            filename: Original file name
            content_type: MIME type reported by the client, if any

        Returns:
            DocumentText; falls back to the file name for unsupported or broken files
        """
        try:
            if self._is_pdf(content, filename, content_type):
                return self._from_pdf(content, filename)
            if self._is_image(filename, content_type):
                return self._from_image(content, filename)
            if (content_type or "").startswith("text/") or filename.lower().endswith(".txt"):
                return self._from_plain_text(content, filename)
        except Exception as e:
            logger.warning(f"Could not decode {filename}, using file name as text: {e}")
            return DocumentText(text=filename, filename=filename, source="filename", error=str(e))

        return DocumentText(
            text=filename,
            filename=filename,
            source="filename",
            error=f"Unsupported document type: {content_type or 'unknown'}",
        )

    def fetch_url(self, url: str) -> DocumentText:
        """Download a document and decode it.

        Non-PDF, non-image responses are treated as text.

        Args:
            url: HTTP(S) URL of the invoice

        Returns:
            DocumentText; falls back to the URL's file name when the download fails
        """
        filename = filename_from_url(url)
        try:
            response = self._download(url)
            content_type = response.headers.get("content-type", "").split(";")[0].strip()
            content = response.content
            if self._is_pdf(content, filename, content_type):
                return self._from_pdf(content, filename)
            if self._is_image(filename, content_type):
                return self._from_image(content, filename)
            return self._from_plain_text(content, filename)
        except Exception as e:
            logger.warning(f"Could not fetch {url}, using file name as text: {e}")
            return DocumentText(text=filename, filename=filename, source="filename", error=str(e))

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        wait=wait_exponential_jitter(initial=1, max=5),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    def _download(self, url: str) -> httpx.Response:
        """GET the URL, following redirects; transport errors are retried.

        Raises:
            httpx.HTTPStatusError: For non-2xx responses
            httpx.TransportError: After all retry attempts are exhausted
        """
        logger.info(f"Downloading invoice from {url}")
        response = httpx.get(
            url,
            timeout=self.settings.download_timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )
        response.raise_for_status()
        return response

    @staticmethod
    def _is_pdf(content: bytes, filename: str, content_type: str | None) -> bool:
        return (
            content_type == "application/pdf"
            or filename.lower().endswith(".pdf")
            or content.startswith(b"%PDF")
        )

    @staticmethod
    def _is_image(filename: str, content_type: str | None) -> bool:
        return (content_type or "").startswith("image/") or (
            PurePosixPath(filename.lower()).suffix in IMAGE_EXTENSIONS
        )

    def _from_pdf(self, content: bytes, filename: str) -> DocumentText:
        reader = PdfReader(io.BytesIO(content))
        text = "\n".join(page.extract_text() or "" for page in reader.pages)
        if not text.strip():
            return DocumentText(
                text=filename, filename=filename, source="filename", error="PDF has no text layer"
            )
        logger.info(f"Extracted {len(text)} characters from {len(reader.pages)} PDF pages")
        return DocumentText(text=text, filename=filename, source="pdf")

    def _from_image(self, content: bytes, filename: str) -> DocumentText:
        image = Image.open(io.BytesIO(content))
        text = pytesseract.image_to_string(image)
        if not text.strip():
            return DocumentText(
                text=filename, filename=filename, source="filename", error="OCR found no text"
            )
        return DocumentText(text=text, filename=filename, source="ocr")

    @staticmethod
    def _from_plain_text(content: bytes, filename: str) -> DocumentText:
        text = content.decode("utf-8", errors="replace")
        if not text.strip():
            return DocumentText(
                text=filename, filename=filename, source="filename", error="Document is empty"
            )
        return DocumentText(text=text, filename=filename, source="text")
