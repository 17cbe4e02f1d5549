from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from xml.etree import ElementTree as ET

from pypdf import PdfReader

from documind.config import ALLOWED_EXTENSIONS
from documind.errors import ExtractionFailed, UnsupportedFormat
from documind.models import DocumentMetadata

logger = logging.getLogger(__name__)

WORD_NAMESPACE = {"w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main"}


@dataclass(frozen=True)
class ExtractionResult:
    text: str
    metadata: DocumentMetadata
    warnings: list[str] = field(default_factory=list)


def normalize_extension(filename: str) -> str:
    return Path(filename or "").suffix.lower().strip()


def count_words(text: str) -> int:
    # Empty or whitespace-only text counts as zero words.
    return len(text.split())


def _extract_pdf_text(content_bytes: bytes) -> tuple[str, int]:
    try:
        reader = PdfReader(io.BytesIO(content_bytes))
        pages: list[str] = []
        for page in reader.pages:
            page_text = (page.extract_text() or "").strip()
            if page_text:
                pages.append(page_text)
        page_count = len(reader.pages)
    except Exception as exc:  # noqa: BLE001
        raise ExtractionFailed(f"Failed to extract text: {exc}") from exc

    return "\n\n".join(pages), page_count


def _extract_docx_text(content_bytes: bytes) -> tuple[str, list[str]]:
    warnings: list[str] = []
    try:
        with zipfile.ZipFile(io.BytesIO(content_bytes)) as archive:
            names = set(archive.namelist())
            xml_payload = archive.read("word/document.xml")
    except (zipfile.BadZipFile, KeyError) as exc:
        raise ExtractionFailed(f"Failed to extract text: {exc}") from exc

    if "[Content_Types].xml" not in names:
        warnings.append("DOCX package has no [Content_Types].xml part.")

    try:
        root = ET.fromstring(xml_payload)
    except ET.ParseError as exc:
        raise ExtractionFailed(f"Failed to extract text: {exc}") from exc

    paragraphs: list[str] = []
    empty_paragraphs = 0
    for paragraph in root.iter(f"{{{WORD_NAMESPACE['w']}}}p"):
        runs = [node.text or "" for node in paragraph.iter(f"{{{WORD_NAMESPACE['w']}}}t")]
        line = "".join(runs).strip()
        if line:
            paragraphs.append(line)
        else:
            empty_paragraphs += 1

    if not paragraphs and root.find(".//w:body", WORD_NAMESPACE) is None:
        warnings.append("DOCX document.xml has no w:body element.")

    if empty_paragraphs:
        logger.debug("Skipped %d empty DOCX paragraphs", empty_paragraphs)

    return "\n".join(paragraphs), warnings


def _decode_text(content_bytes: bytes) -> str:
    text = content_bytes.decode("utf-8", errors="replace")
    return text.lstrip("\ufeff")


def extract_text(content_bytes: bytes, filename: str) -> ExtractionResult:
    """Extract plain text and basic metadata from a PDF, DOCX or TXT upload.

    Raises ``UnsupportedFormat`` for any other extension and ``ExtractionFailed``
    when the document cannot be decoded.
    """
    extension = normalize_extension(filename)
    if extension not in ALLOWED_EXTENSIONS:
        raise UnsupportedFormat(
            f"Unsupported file format '{extension or 'unknown'}'. Supported types: PDF, DOCX, TXT."
        )

    page_count = 0
    warnings: list[str] = []

    if extension == ".pdf":
        text, page_count = _extract_pdf_text(content_bytes)
    elif extension == ".docx":
        text, warnings = _extract_docx_text(content_bytes)
        for warning in warnings:
            logger.warning("%s: %s", filename, warning)
    else:
        text = _decode_text(content_bytes)

    text = text.replace("\x00", "")
    metadata = DocumentMetadata(
        file_size=len(content_bytes),
        file_type=extension,
        page_count=page_count,
        word_count=count_words(text),
    )
    return ExtractionResult(text=text, metadata=metadata, warnings=warnings)
