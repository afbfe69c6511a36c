"""
Text extraction for uploaded study material
"""
from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from typing import Optional

import openai
import structlog
from openai import OpenAI
from pypdf import PdfReader

from studymate.errors import ValidationError

logger = structlog.get_logger()

TRANSCRIPTION_MODEL = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")
MAX_PDF_PAGES = 50


@dataclass
class ExtractedText:
    text: str
    input_type: str


def _get_client() -> OpenAI:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY not set")
    return OpenAI()


def classify_upload(filename: str, content_type: Optional[str]) -> str:
    mime = (content_type or "").lower()
    if mime.startswith("audio/"):
        return "audio"
    if mime.startswith("video/"):
        return "video"
    if mime == "application/pdf" or filename.lower().endswith(".pdf"):
        return "pdf"
    if mime.startswith("text/"):
        return "document"
    return "file"


def _placeholder(filename: str, content_type: Optional[str], reason: str) -> str:
    return (
        f"Uploaded file {filename} ({content_type or 'unknown type'}). {reason} "
        "Study materials below are generated from this description of the file."
    )


def transcribe_media(path: str, filename: str, content_type: Optional[str]) -> str:
    try:
        client = _get_client().with_options(timeout=120.0)
        with open(path, "rb") as fh:
            transcript = client.audio.transcriptions.create(model=TRANSCRIPTION_MODEL, file=fh)
        text = (transcript.text or "").strip()
        if text:
            return text
        reason = "The transcription came back empty."
    except (openai.OpenAIError, RuntimeError, OSError) as e:
        logger.warning("transcription_failed", filename=filename, error=str(e))
        reason = "Audio transcription is currently unavailable."
    return _placeholder(filename, content_type, reason)


def extract_pdf_text(path: str) -> str:
    try:
        reader = PdfReader(path)
        if reader.is_encrypted:
            reader.decrypt("")
        return "\n".join((page.extract_text() or "") for page in reader.pages[:MAX_PDF_PAGES])
    except Exception as e:
        raise ValidationError(f"PDF parse error: {e}") from e


def extract_text(content: bytes, filename: str, content_type: Optional[str]) -> ExtractedText:
    """Write the upload to a temp file, pull text out of it, and always remove the file."""
    input_type = classify_upload(filename, content_type)
    suffix = os.path.splitext(filename)[1]
    fd, path = tempfile.mkstemp(prefix="studymate-", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)

        if input_type in ("audio", "video"):
            text = transcribe_media(path, filename, content_type)
        elif input_type == "pdf":
            text = extract_pdf_text(path)
        elif input_type == "document":
            with open(path, "rb") as fh:
                text = fh.read().decode("utf-8", errors="ignore")
        else:
            text = _placeholder(filename, content_type, "Text extraction is not supported for this file type.")
    finally:
        try:
            os.unlink(path)
        except OSError as e:
            logger.warning("temp_file_cleanup_failed", path=path, error=str(e))

    logger.info("upload_text_extracted", filename=filename, input_type=input_type, chars=len(text))
    return ExtractedText(text=text, input_type=input_type)
