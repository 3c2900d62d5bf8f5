"""Shared fixtures for the LetterStream client tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

PDF_BYTES = b"%PDF-1.4\n%test document\n"


@pytest.fixture
def make_pdf(tmp_path) -> Callable[..., Path]:
    """Create a small PDF-looking file; ``size`` pads it to an exact length."""

    def _make(name: str = "letter.pdf", size: int | None = None, subdir: str = "docs") -> Path:
        folder = tmp_path / subdir
        folder.mkdir(parents=True, exist_ok=True)
        data = PDF_BYTES
        if size is not None:
            data = (PDF_BYTES + b"0" * size)[:size]
        path = folder / name
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def letter_content(make_pdf) -> Callable[..., dict[str, Any]]:
    """Build a valid ``create_letter`` payload; keyword overrides win."""

    def _content(doc_id: str = "1001", pdf: Path | None = None, **overrides: Any) -> dict[str, Any]:
        pdf = pdf or make_pdf(f"{doc_id}.pdf")
        content: dict[str, Any] = {
            "UniqueDocId": doc_id,
            "PDFFileName": str(pdf),
            "PageCount": 2,
            "MailType": "firstclass",
            "RecipientName1": "Jane Doe",
            "RecipientAddr1": "1 Main St",
            "RecipientCity": "Springfield",
            "RecipientState": "IL",
            "RecipientZip": "62701",
            "SenderName1": "Acme Billing",
            "SenderName2": "Accounts Receivable",
            "SenderAddr1": "500 Market St",
            "SenderAddr2": "Suite 200",
            "SenderCity": "Chicago",
            "SenderState": "IL",
            "SenderZip": "60601",
            "Duplex": "Y",
            "Ink": "B",
        }
        content.update(overrides)
        return {key: value for key, value in content.items() if value is not None}

    return _content


@pytest.fixture
def make_letter(make_pdf):
    """Build a ``Letter`` directly, bypassing validation."""
    from letterstream.models import Address, Letter

    def _letter(doc_id: str = "1001", pdf: Path | None = None, **overrides: Any) -> Letter:
        pdf = pdf or make_pdf(f"{doc_id}.pdf")
        fields: dict[str, Any] = {
            "unique_doc_id": doc_id,
            "mail_type": "firstclass",
            "page_count": 1,
            "document_path": str(pdf),
            "document_file_name": pdf.name,
            "recipient": Address(name1="Jane Doe", addr1="1 Main St", city="Springfield", state="IL", zip="62701"),
            "sender": Address(
                name1="Acme Billing",
                name2="AR",
                addr1="500 Market St",
                addr2="Suite 200",
                city="Chicago",
                state="IL",
                zip="60601",
            ),
        }
        fields.update(overrides)
        return Letter(**fields)

    return _letter
