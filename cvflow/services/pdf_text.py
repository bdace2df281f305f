import io
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..errors import InvalidPayload

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"


def pdf_to_text(pdf_bytes: bytes) -> str:
    """Extract text from PDF bytes, one form-feed between pages."""
    if not pdf_bytes:
        raise InvalidPayload("No PDF file uploaded")
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError, OSError) as e:
        logger.warning("PDF parsing failed: %s", e)
        raise InvalidPayload(f"Unreadable PDF: {e}") from e
    text = PAGE_BREAK.join(pages)
    logger.info("PDF parsed pages=%d chars=%d", len(pages), len(text))
    return text
