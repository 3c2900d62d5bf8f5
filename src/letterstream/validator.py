# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Validation of raw letter submissions.

``LetterValidator`` turns the dict a caller passes to ``create_letter``
(keyed by the remote service's column names, e.g. ``RecipientZip``) into a
frozen ``Letter``. Checks run in a fixed order: document descriptor
fields, duplicate id, file existence, attachment name, then the recipient
and sender address fields. Every letter in a batch must attach files with
distinct basenames, since the archive stores attachments flat.
"""

from __future__ import annotations

import os
import random
import time
from typing import Any

from .errors import (
    DocumentNameConflict,
    DocumentNotFoundError,
    DuplicateSkipped,
    LetterValidationError,
    MissingFieldError,
)
from .letter_queue import LetterQueue
from .models import OPTION_COLUMNS, REQUIRED_ADDRESS_FIELDS, Address, Letter
from .packager import MANIFEST_NAME

DESCRIPTOR_FIELDS = ("UniqueDocId", "MailType", "PageCount", "PDFFileName")
ADDRESS_TYPES = ("Recipient", "Sender")


def generate_doc_id() -> str:
    """Return an advisory unique id: epoch seconds plus a 3-digit random suffix.

    Two calls in the same second collide with probability 1/1000.
    """
    return f"{int(time.time())}{random.randint(0, 999):03d}"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class LetterValidator:
    """Validates submissions against the pending queue.

    Attributes:
        queue: Queue consulted for duplicate document ids.
        auto_doc_id: When True, a missing ``UniqueDocId`` is generated
            instead of rejected.
    """

    def __init__(self, queue: LetterQueue, auto_doc_id: bool = False):
        self.queue = queue
        self.auto_doc_id = auto_doc_id

    async def validate(self, content: dict[str, Any]) -> Letter:
        """Validate ``content`` and build the letter to enqueue.

        ``PDFFileName`` holds the path to the PDF; the returned letter keeps
        that path as ``document_path`` and its basename as
        ``document_file_name``.

        Raises:
            MissingFieldError: A required field is absent or empty.
            DuplicateSkipped: ``UniqueDocId`` is already queued.
            DocumentNotFoundError: The PDF is missing or unreadable.
            DocumentNameConflict: A queued letter attaches a different file
                with the same basename.
            LetterValidationError: The PDF basename is reserved or
                ``PageCount`` is not a positive integer.
        """
        content = dict(content)
        if self.auto_doc_id and _is_blank(content.get("UniqueDocId")):
            content["UniqueDocId"] = generate_doc_id()

        for key in DESCRIPTOR_FIELDS:
            if _is_blank(content.get(key)):
                raise MissingFieldError(key)

        doc_id = str(content["UniqueDocId"])
        if await self.queue.contains(doc_id):
            raise DuplicateSkipped(doc_id)

        path = str(content["PDFFileName"])
        if not (os.path.isfile(path) and os.access(path, os.R_OK)):
            raise DocumentNotFoundError(path)

        file_name = os.path.basename(path)
        if file_name == MANIFEST_NAME:
            raise LetterValidationError(f"File name '{file_name}' is reserved for the batch manifest.")
        queued_path = await self.queue.document_path_for(file_name)
        if queued_path is not None and queued_path != path:
            raise DocumentNameConflict(file_name, path, queued_path)

        for address_type in ADDRESS_TYPES:
            for name in REQUIRED_ADDRESS_FIELDS:
                if _is_blank(content.get(address_type + name)):
                    raise MissingFieldError(address_type + name)

        try:
            page_count = int(content["PageCount"])
        except (TypeError, ValueError) as exc:
            raise LetterValidationError(f"Invalid 'PageCount': {content['PageCount']!r}") from exc
        if page_count < 1:
            raise LetterValidationError(f"Invalid 'PageCount': {page_count}")

        options = {
            attr: str(content[column])
            for column, attr in OPTION_COLUMNS.items()
            if not _is_blank(content.get(column))
        }
        return Letter(
            unique_doc_id=doc_id,
            mail_type=str(content["MailType"]),
            page_count=page_count,
            document_path=path,
            document_file_name=file_name,
            recipient=Address.from_columns(content, "Recipient"),
            sender=Address.from_columns(content, "Sender"),
            **options,
        )
