"""Turns an uploaded report into prompt material: PDF text or an inline image."""

import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from pathlib import Path, PurePath

import pdfplumber
from fastapi import UploadFile

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


class ExtractionError(Exception):
    """The uploaded document could not be parsed."""


@dataclass
class InlineAttachment:
    mime_type: str
    data: str  # base64

    def as_part(self) -> dict:
        return {"inline_data": {"mime_type": self.mime_type, "data": self.data}}


@dataclass
class ExtractedReport:
    text: str | None = None
    attachment: InlineAttachment | None = None


def staged_path(upload_dir: Path, filename: str) -> Path:
    """Upload location named by millisecond timestamp and original file name."""
    name = PurePath(filename.replace("\\", "/")).name or "upload"
    return upload_dir / f"{int(time.time() * 1000)}-{name}"


def read_pdf_text(path: Path) -> str:
    try:
        with pdfplumber.open(path) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        raise ExtractionError(f"Could not read PDF {path.name}: {e}") from e
    return "\n".join(p for p in pages if p)


def extract_file(path: Path, media_type: str) -> ExtractedReport:
    if media_type == PDF_MEDIA_TYPE:
        return ExtractedReport(text=read_pdf_text(path))
    if media_type.startswith("image/"):
        encoded = base64.b64encode(path.read_bytes()).decode("ascii")
        return ExtractedReport(attachment=InlineAttachment(mime_type=media_type, data=encoded))
    logger.debug(f"Ignoring upload {path.name} with unsupported type {media_type!r}")
    return ExtractedReport()


async def extract_upload(upload: UploadFile, upload_dir: Path) -> ExtractedReport:
    """Stage ``upload`` to disk, extract it by media type, and always remove the staged file."""
    media_type = upload.content_type or ""
    path = staged_path(upload_dir, upload.filename or "")
    try:
        content = await upload.read()
        upload_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_bytes, content)
        logger.info(f"Staged upload {path.name} ({media_type}, {len(content)} bytes)")
        return await asyncio.to_thread(extract_file, path, media_type)
    finally:
        path.unlink(missing_ok=True)
