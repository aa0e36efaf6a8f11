"""Data structures for the ingest gateway."""

from dataclasses import dataclass


@dataclass(slots=True)
class UploadValidationResult:
    """Outcome of validating an uploaded file."""

    content_type: str
    size_bytes: int
    sha256: str
    filename: str
