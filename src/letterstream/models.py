# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for letters, addresses and flush modes.

This module defines the data models shared by the queue, the packager and
the client. Field names follow Python conventions; the mapping to the
remote service's manifest columns lives in ``MANIFEST_COLUMNS`` and in the
``to_manifest_row`` / ``from_manifest_row`` helpers.

Models:
    - Address: Recipient or sender address block
    - Letter: A validated, immutable print job
    - OnCreate / OnCount / OnSize / OnInterval: Flush mode variants
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

# Column order is part of the wire contract with the remote service.
MANIFEST_COLUMNS: tuple[str, ...] = (
    "UniqueDocId",
    "PDFFileName",
    "RecipientName1",
    "RecipientName2",
    "RecipientAddr1",
    "RecipientAddr2",
    "RecipientCity",
    "RecipientState",
    "RecipientZip",
    "SenderName1",
    "SenderName2",
    "SenderAddr1",
    "SenderAddr2",
    "SenderCity",
    "SenderState",
    "SenderZip",
    "PageCount",
    "MailType",
    "CoverSheet",
    "Duplex",
    "Ink",
    "Paper",
    "Return Envelope",
    "Affidavit",
)

ADDRESS_FIELDS: tuple[str, ...] = ("Name1", "Name2", "Addr1", "Addr2", "City", "State", "Zip")
REQUIRED_ADDRESS_FIELDS: tuple[str, ...] = ("Name1", "Addr1", "City", "State", "Zip")

# Manifest column -> Letter attribute for the print options.
OPTION_COLUMNS: dict[str, str] = {
    "CoverSheet": "cover_sheet",
    "Duplex": "duplex",
    "Ink": "ink",
    "Paper": "paper",
    "Return Envelope": "return_envelope",
    "Affidavit": "affidavit",
}


class Address(BaseModel):
    """Recipient or sender address block.

    Attributes:
        name1: First name line (required).
        name2: Second name line.
        addr1: First street line (required).
        addr2: Second street line.
        city: City (required).
        state: State or province code (required).
        zip: Postal code (required).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name1: Annotated[str, Field(min_length=1, description="First name line")]
    name2: Annotated[str | None, Field(default=None, description="Second name line")]
    addr1: Annotated[str, Field(min_length=1, description="First street line")]
    addr2: Annotated[str | None, Field(default=None, description="Second street line")]
    city: Annotated[str, Field(min_length=1, description="City")]
    state: Annotated[str, Field(min_length=1, description="State code")]
    zip: Annotated[str, Field(min_length=1, description="Postal code")]

    def to_columns(self, prefix: str) -> dict[str, str]:
        """Return the address as manifest columns named ``<prefix><Field>``."""
        return {f"{prefix}{name}": getattr(self, name.lower()) or "" for name in ADDRESS_FIELDS}

    @classmethod
    def from_columns(cls, row: dict[str, Any], prefix: str) -> "Address":
        """Build an address from ``<prefix><Field>`` keys; blanks become None."""
        values = {}
        for name in ADDRESS_FIELDS:
            raw = row.get(f"{prefix}{name}")
            values[name.lower()] = str(raw) if raw not in (None, "") else None
        return cls(**values)


class Letter(BaseModel):
    """A single print job waiting in the queue.

    Instances are frozen: once a letter has been validated and enqueued
    it is never mutated, only drained.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    unique_doc_id: Annotated[str, Field(min_length=1, description="Caller or generated document id")]
    mail_type: Annotated[str, Field(min_length=1, description="Remote mail class")]
    page_count: Annotated[int, Field(ge=1, description="Pages in the PDF")]
    document_path: Annotated[str, Field(min_length=1, description="PDF path on disk")]
    document_file_name: Annotated[str, Field(min_length=1, description="PDF basename")]
    recipient: Address
    sender: Address
    cover_sheet: str | None = None
    duplex: str | None = None
    ink: str | None = None
    paper: str | None = None
    return_envelope: str | None = None
    affidavit: str | None = None

    def to_manifest_row(self) -> dict[str, str]:
        """Return the manifest row for this letter keyed by ``MANIFEST_COLUMNS``."""
        row: dict[str, str] = {
            "UniqueDocId": self.unique_doc_id,
            "PDFFileName": self.document_file_name,
            "PageCount": str(self.page_count),
            "MailType": self.mail_type,
        }
        row.update(self.recipient.to_columns("Recipient"))
        row.update(self.sender.to_columns("Sender"))
        for column, attr in OPTION_COLUMNS.items():
            row[column] = getattr(self, attr) or ""
        return {column: row[column] for column in MANIFEST_COLUMNS}

    @classmethod
    def from_manifest_row(cls, row: dict[str, Any], document_path: str) -> "Letter":
        """Rebuild a letter from a manifest row.

        The manifest only carries the basename, so the caller supplies the
        on-disk ``document_path``.
        """
        options = {
            attr: (str(row[column]) if row.get(column) not in (None, "") else None)
            for column, attr in OPTION_COLUMNS.items()
        }
        return cls(
            unique_doc_id=str(row["UniqueDocId"]),
            mail_type=str(row["MailType"]),
            page_count=int(row["PageCount"]),
            document_path=document_path,
            document_file_name=str(row["PDFFileName"]),
            recipient=Address.from_columns(row, "Recipient"),
            sender=Address.from_columns(row, "Sender"),
            **options,
        )


ResultCallback = Callable[[Any], Union[Awaitable[None], None]]
ErrorCallback = Callable[[Exception], Union[Awaitable[None], None]]


class OnCreate(BaseModel):
    """Flush after every letter; each letter is its own batch."""

    model_config = ConfigDict(frozen=True)

    send_on: Literal["letter_created"] = "letter_created"


class OnCount(BaseModel):
    """Flush once the queue holds at least ``value`` letters."""

    model_config = ConfigDict(frozen=True)

    send_on: Literal["filecount_limit"] = "filecount_limit"
    value: Annotated[int, Field(ge=1, description="Letter count threshold")]


class OnSize(BaseModel):
    """Flush once cumulative attachment size exceeds ``value`` bytes."""

    model_config = ConfigDict(frozen=True)

    send_on: Literal["filesize_limit"] = "filesize_limit"
    value: Annotated[int, Field(ge=0, description="Cumulative size threshold in bytes")]


class OnInterval(BaseModel):
    """Flush every ``value`` seconds from a background task.

    Results never reach the enqueueing caller, so both callbacks are
    mandatory.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    send_on: Literal["interval"] = "interval"
    value: Annotated[float, Field(gt=0, description="Seconds between flushes")]
    success_cb: ResultCallback
    error_cb: ErrorCallback


FlushMode = Annotated[
    Union[OnCreate, OnCount, OnSize, OnInterval],
    Field(discriminator="send_on"),
]

_flush_mode_adapter: TypeAdapter[Any] = TypeAdapter(FlushMode)


def parse_flush_mode(value: Any) -> OnCreate | OnCount | OnSize | OnInterval:
    """Normalise a flush mode given as a model or a plain dict.

    Accepts ``sendOn`` as an alias of ``send_on`` and ``successCb`` /
    ``errorCb`` as aliases of the callback keys. ``None`` means
    ``letter_created``.

    Raises:
        pydantic.ValidationError: If the mode is unknown or a required
            field for that mode is missing.
    """
    if value is None:
        return OnCreate()
    if isinstance(value, (OnCreate, OnCount, OnSize, OnInterval)):
        return value
    data = dict(value)
    aliases = {"sendOn": "send_on", "successCb": "success_cb", "errorCb": "error_cb"}
    for alias, name in aliases.items():
        if alias in data:
            data.setdefault(name, data.pop(alias))
    return _flush_mode_adapter.validate_python(data)
