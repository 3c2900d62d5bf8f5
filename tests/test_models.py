import pytest
from pydantic import ValidationError

from letterstream.models import (
    MANIFEST_COLUMNS,
    Letter,
    OnCount,
    OnCreate,
    OnInterval,
    OnSize,
    parse_flush_mode,
)


def test_manifest_row_follows_column_order(make_letter):
    letter = make_letter("42", duplex="Y", return_envelope="N")
    row = letter.to_manifest_row()

    assert tuple(row) == MANIFEST_COLUMNS
    assert row["UniqueDocId"] == "42"
    assert row["PDFFileName"] == "42.pdf"
    assert row["RecipientName2"] == ""
    assert row["SenderAddr2"] == "Suite 200"
    assert row["PageCount"] == "1"
    assert row["Duplex"] == "Y"
    assert row["Return Envelope"] == "N"
    assert row["Affidavit"] == ""


def test_manifest_row_round_trip(make_letter):
    letter = make_letter("7", cover_sheet="Y", ink="C", paper="W")
    rebuilt = Letter.from_manifest_row(letter.to_manifest_row(), letter.document_path)
    assert rebuilt == letter


def test_letter_is_frozen(make_letter):
    letter = make_letter()
    with pytest.raises(ValidationError):
        letter.unique_doc_id = "other"


def test_parse_flush_mode_defaults_to_on_create():
    assert parse_flush_mode(None) == OnCreate()
    assert parse_flush_mode({"send_on": "letter_created"}) == OnCreate()


def test_parse_flush_mode_variants():
    assert parse_flush_mode({"sendOn": "filecount_limit", "value": "3"}) == OnCount(value=3)
    assert parse_flush_mode({"send_on": "filesize_limit", "value": 1024}) == OnSize(value=1024)

    def ok(result):
        return None

    mode = parse_flush_mode({"send_on": "interval", "value": 5, "successCb": ok, "errorCb": ok})
    assert isinstance(mode, OnInterval)
    assert mode.value == 5
    assert mode.success_cb is ok


def test_parse_flush_mode_passes_models_through():
    mode = OnCount(value=2)
    assert parse_flush_mode(mode) is mode


@pytest.mark.parametrize(
    "data",
    [
        {"send_on": "filecount_limit"},
        {"send_on": "filecount_limit", "value": 0},
        {"send_on": "interval", "value": 10},
        {"send_on": "interval", "value": 10, "success_cb": print},
        {"send_on": "sometimes"},
    ],
)
def test_parse_flush_mode_rejects_incomplete_modes(data):
    with pytest.raises(ValidationError):
        parse_flush_mode(data)
