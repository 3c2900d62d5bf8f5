"""Batching client for the LetterStream print-and-mail API.

This package queues letter print jobs (an address pair, a PDF and print
options) and submits them to the remote API in bulk:

- Validation of letters against required fields and queued duplicates
- In-memory or SQLite-backed queue storage
- Flush on every letter, on a count or size threshold, or on a timer
- CSV manifest plus zip archive packaging with attachment de-duplication
- Status, proof and signature lookups
- Prometheus metrics for queue and batch activity

Example:
    Basic usage::

        from letterstream import LetterStreamClient

        async with LetterStreamClient(api_id="12345", api_key="secret") as client:
            result = await client.create_letter({
                "UniqueDocId": "inv-1001",
                "PDFFileName": "/data/invoices/1001.pdf",
                "PageCount": 2,
                "MailType": "firstclass",
                ...
            })
"""

from .client import LetterStreamClient
from .config_loader import ClientConfig, load_client_config
from .errors import (
    ConfigurationError,
    DocumentNameConflict,
    DocumentNotFoundError,
    DuplicateSkipped,
    InvalidDocumentFormat,
    LetterStreamError,
    LetterValidationError,
    MissingFieldError,
    PackagingError,
    SubmissionError,
)
from .letter_queue import LetterQueue, MemoryQueueStorage, QueueStorage
from .models import MANIFEST_COLUMNS, Address, Letter, OnCount, OnCreate, OnInterval, OnSize
from .persistence import SqliteQueueStorage

__all__ = [
    "MANIFEST_COLUMNS",
    "Address",
    "ClientConfig",
    "ConfigurationError",
    "DocumentNameConflict",
    "DocumentNotFoundError",
    "DuplicateSkipped",
    "InvalidDocumentFormat",
    "Letter",
    "LetterQueue",
    "LetterStreamClient",
    "LetterStreamError",
    "LetterValidationError",
    "MemoryQueueStorage",
    "MissingFieldError",
    "OnCount",
    "OnCreate",
    "OnInterval",
    "OnSize",
    "PackagingError",
    "QueueStorage",
    "SqliteQueueStorage",
    "SubmissionError",
    "load_client_config",
]
