"""
BookVetting - PDF Fingerprinting
================================

Content hash and best-effort publication year of an uploaded PDF.

The year comes from the first ``D:YYYY`` date string in the raw bytes
(the PDF date format used by /CreationDate and /ModDate). This is a byte
scan, not a PDF parse; many files have no usable date.
"""

import hashlib
import re
from typing import Optional

from src.shared.models import PdfMetadata

MIN_METADATA_YEAR = 1990
MAX_METADATA_YEAR = 2100

_PDF_DATE = re.compile(rb'D:(\d{4})')


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest of the raw bytes."""
    return hashlib.sha256(data).hexdigest()


def extract_metadata_year(data: bytes) -> Optional[int]:
    match = _PDF_DATE.search(data)
    if not match:
        return None

    year = int(match.group(1))
    if MIN_METADATA_YEAR <= year <= MAX_METADATA_YEAR:
        return year
    return None


def extract_pdf_metadata(data: bytes) -> PdfMetadata:
    """Hash and publication year of a PDF buffer."""
    return PdfMetadata(hash=content_hash(data), year=extract_metadata_year(data))
