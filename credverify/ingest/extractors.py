"""
Text Extraction
================

Produces raw text from an uploaded credential file. Polymorphic over the
input format:

    - PDF documents  → pypdf page text, concatenated
    - Plain text     → decoded as UTF-8
    - Images         → Tesseract OCR via pytesseract

Extraction failure is data, not an exception: `safe_extract()` converts
any error into an empty string so the pipeline can still reach a status
(rejection) instead of crashing.

Data Flow:
    stored file → FormatRoutingExtractor → text → analyzer / skills
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional

logger = logging.getLogger("credverify.ingest.extractors")


class FileFormat(str, Enum):
    """Coarse format hint used to pick an extractor."""
    PDF = "pdf"
    TEXT = "text"
    IMAGE = "image"


def detect_format(filename: str) -> FileFormat:
    """
    Guess the format from the file extension.

    Anything that is not a PDF or a .txt file is treated as an image and
    sent to OCR.
    """
    ext = Path(filename).suffix.lower().lstrip(".")
    if ext == "pdf":
        return FileFormat.PDF
    if ext == "txt":
        return FileFormat.TEXT
    return FileFormat.IMAGE


class TextExtractor(ABC):
    """
    Abstract base class for text extractors.

    Implementations turn one file into a text string. They may raise on
    failure; callers go through `safe_extract()` to get the no-raise
    contract.
    """

    @abstractmethod
    async def extract(self, path: Path, format_hint: Optional[FileFormat] = None) -> str:
        """
        Extract text from the file at path.

        Args:
            path: Path to the stored file.
            format_hint: Format of the file, if already known.

        Returns:
            Extracted text (may be empty).
        """
        ...


class PdfTextExtractor(TextExtractor):
    """Concatenates the extractable text of every PDF page."""

    async def extract(self, path: Path, format_hint: Optional[FileFormat] = None) -> str:
        return await asyncio.to_thread(self._extract_sync, path)

    @staticmethod
    def _extract_sync(path: Path) -> str:
        from pypdf import PdfReader

        reader = PdfReader(str(path))
        pages = [page.extract_text() or "" for page in reader.pages]
        text = "\n".join(pages)
        logger.debug(f"PDF extraction: {len(reader.pages)} pages, {len(text)} chars")
        return text


class PlainTextExtractor(TextExtractor):
    """Reads plain-text uploads as UTF-8, replacing undecodable bytes."""

    async def extract(self, path: Path, format_hint: Optional[FileFormat] = None) -> str:
        return await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")


class OcrTextExtractor(TextExtractor):
    """
    Optical character recognition for scanned certificates.

    Args:
        language: Tesseract language code(s), e.g. "eng" or "eng+hin".
        tesseract_cmd: Optional path to the tesseract binary.
    """

    def __init__(self, language: str = "eng", tesseract_cmd: Optional[str] = None):
        self.language = language
        self.tesseract_cmd = tesseract_cmd

    async def extract(self, path: Path, format_hint: Optional[FileFormat] = None) -> str:
        return await asyncio.to_thread(self._extract_sync, path)

    def _extract_sync(self, path: Path) -> str:
        import pytesseract
        from PIL import Image

        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd

        with Image.open(path) as image:
            text = pytesseract.image_to_string(image, lang=self.language)
        logger.debug(f"OCR extraction: {len(text)} chars ({self.language})")
        return text


class FormatRoutingExtractor(TextExtractor):
    """
    Dispatches to a per-format extractor.

    Usage:
        extractor = FormatRoutingExtractor.default(language="eng")
        text = await extractor.extract(Path("uploads/123.pdf"))

    Args:
        extractors: Mapping of FileFormat → extractor.
    """

    def __init__(self, extractors: dict[FileFormat, TextExtractor]):
        self.extractors = dict(extractors)

    @classmethod
    def default(cls, language: str = "eng") -> "FormatRoutingExtractor":
        return cls({
            FileFormat.PDF: PdfTextExtractor(),
            FileFormat.TEXT: PlainTextExtractor(),
            FileFormat.IMAGE: OcrTextExtractor(language=language),
        })

    async def extract(self, path: Path, format_hint: Optional[FileFormat] = None) -> str:
        fmt = format_hint or detect_format(path.name)
        extractor = self.extractors.get(fmt)
        if extractor is None:
            raise ValueError(f"No extractor registered for format {fmt.value!r}")
        return await extractor.extract(path, fmt)


async def safe_extract(
    extractor: TextExtractor,
    path: Path,
    format_hint: Optional[FileFormat] = None,
) -> str:
    """
    Run an extractor, converting every failure into an empty string.

    Returns:
        The extracted text, or "" if extraction raised.
    """
    try:
        text = await extractor.extract(path, format_hint)
    except Exception as e:
        logger.error(f"Text extraction failed for {path.name}: {type(e).__name__}: {e}")
        return ""
    return text or ""
