# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception types raised by the LetterStream client.

Every exception carries a short machine-readable ``code`` so callers can
branch on the failure class without string matching.
"""

from __future__ import annotations


class LetterStreamError(RuntimeError):
    """Base class for all client errors."""

    code = "letterstream_error"


class ConfigurationError(LetterStreamError):
    """Raised when the client is constructed with invalid settings."""

    code = "invalid_configuration"


class LetterValidationError(LetterStreamError):
    """Raised when a letter submission is rejected before enqueueing."""

    code = "invalid_letter"


class MissingFieldError(LetterValidationError):
    """A required letter field is absent or empty."""

    code = "missing_field"

    def __init__(self, field: str):
        super().__init__(f"No '{field}' provided.")
        self.field = field


class DocumentNotFoundError(LetterValidationError):
    """The letter's PDF path does not resolve to a readable file."""

    code = "document_not_found"

    def __init__(self, path: str):
        super().__init__(f"File '{path}' not found.")
        self.path = path


class DocumentNameConflict(LetterValidationError):
    """Another queued letter attaches a different file with the same basename."""

    code = "document_name_conflict"

    def __init__(self, file_name: str, path: str, queued_path: str):
        super().__init__(
            f"File name '{file_name}' of '{path}' is already used by queued document '{queued_path}'."
        )
        self.file_name = file_name
        self.path = path
        self.queued_path = queued_path


class DuplicateSkipped(LetterStreamError):
    """The letter's document id is already queued; the letter is dropped."""

    code = "duplicate_skipped"

    def __init__(self, unique_doc_id: str):
        super().__init__(f"Letter {unique_doc_id} already in queue.")
        self.unique_doc_id = unique_doc_id


class PackagingError(LetterStreamError):
    """The batch manifest or archive could not be written."""

    code = "packaging_failed"


class SubmissionError(LetterStreamError):
    """The remote API call failed or returned a non-2xx response.

    Attributes:
        status: HTTP status code, or None for transport failures.
        body: Response body text or the transport error message.
    """

    code = "submission_failed"

    def __init__(self, status: int | None, body: str):
        prefix = f"HTTP {status}" if status is not None else "Transport error"
        super().__init__(f"{prefix}: {body}")
        self.status = status
        self.body = body


class InvalidDocumentFormat(LetterStreamError):
    """A retrieved proof or signature does not look like a PDF."""

    code = "invalid_document_format"

    def __init__(self, message: str = "Probably not a valid PDF."):
        super().__init__(message)
