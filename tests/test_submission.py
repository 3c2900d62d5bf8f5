"""Tests for the HTTP transport with aiohttp mocked by aioresponses."""

import base64

import aiohttp
import pytest
from aioresponses import aioresponses
from yarl import URL

from letterstream.errors import InvalidDocumentFormat, SubmissionError
from letterstream.packager import BatchPackager
from letterstream.signer import LetterStreamSigner
from letterstream.submission import DEFAULT_API_URL, SubmissionClient

API_KEY = ("POST", URL(DEFAULT_API_URL))


def make_client():
    signer = LetterStreamSigner("acct-1", "secret", clock=lambda: 1700000000, rng=lambda a, b: 7)
    return SubmissionClient(signer)


def form_field_names(form: aiohttp.FormData) -> list[str]:
    return [type_options["name"] for type_options, _headers, _value in form._fields]


@pytest.mark.asyncio
async def test_submit_uploads_archive(make_letter):
    client = make_client()
    with BatchPackager().build([make_letter("1"), make_letter("2")]) as packaged:
        with aioresponses() as m:
            m.post(DEFAULT_API_URL, status=200, payload={"batch": 99, "count": 2})
            result = await client.submit(packaged)

            request = m.requests[API_KEY][0]
            form = request.kwargs["data"]
            assert isinstance(form, aiohttp.FormData)
            names = form_field_names(form)
    await client.close()

    assert result == {"batch": 99, "count": 2}
    assert names[-1] == "multi_file"
    assert {"a", "h", "t", "responseformat"} <= set(names)


@pytest.mark.asyncio
async def test_query_sends_escaped_ids():
    client = make_client()
    with aioresponses() as m:
        m.post(DEFAULT_API_URL, status=200, payload={"status": "ok"})
        result = await client.get_batch_status("10 01", "1002")
        data = m.requests[API_KEY][0].kwargs["data"]
    await client.close()

    assert result == {"status": "ok"}
    assert data["batchstatus"] == "10%2001,1002"
    assert data["a"] == "acct-1"
    assert data["t"] == "1700000000007"
    assert data["responseformat"] == "json"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,field",
    [
        ("get_job_status", "jobstatus"),
        ("get_document_status", "docstatus"),
        ("get_account_status", "accountstatus"),
    ],
)
async def test_status_kinds(method, field):
    client = make_client()
    with aioresponses() as m:
        m.post(DEFAULT_API_URL, status=200, payload={})
        await getattr(client, method)("5")
        data = m.requests[API_KEY][0].kwargs["data"]
    await client.close()
    assert data[field] == "5"


@pytest.mark.asyncio
async def test_query_validates_arguments():
    client = make_client()
    with pytest.raises(ValueError):
        await client.query("invoice", ["1"])
    with pytest.raises(ValueError):
        await client.query("batch", [])


@pytest.mark.asyncio
async def test_non_2xx_raises_submission_error():
    client = make_client()
    with aioresponses() as m:
        m.post(DEFAULT_API_URL, status=403, body="bad signature")
        with pytest.raises(SubmissionError) as exc_info:
            await client.get_account_status("1")
    await client.close()
    assert exc_info.value.status == 403
    assert exc_info.value.body == "bad signature"


@pytest.mark.asyncio
async def test_transport_error_raises_submission_error():
    client = make_client()
    with aioresponses() as m:
        m.post(DEFAULT_API_URL, exception=aiohttp.ClientConnectionError("refused"))
        with pytest.raises(SubmissionError) as exc_info:
            await client.get_account_status("1")
    await client.close()
    assert exc_info.value.status is None
    assert "refused" in exc_info.value.body


@pytest.mark.asyncio
async def test_invalid_json_raises_submission_error():
    client = make_client()
    with aioresponses() as m:
        m.post(DEFAULT_API_URL, status=200, body="<html>oops</html>")
        with pytest.raises(SubmissionError):
            await client.get_account_status("1")
    await client.close()


@pytest.mark.asyncio
async def test_document_proof_is_decoded_and_saved(tmp_path):
    client = make_client()
    target = tmp_path / "proof.pdf"
    with aioresponses() as m:
        m.post(DEFAULT_API_URL, status=200, body=base64.b64encode(b"%PDF-1.4 proof"))
        path = await client.get_document_proof("1001", target)
        data = m.requests[API_KEY][0].kwargs["data"]
    await client.close()

    assert path == target
    assert target.read_bytes() == b"%PDF-1.4 proof"
    assert data["doc_id"] == "1001"
    assert data["getinfo"] == "proof"


@pytest.mark.asyncio
async def test_document_proof_rejects_non_pdf(tmp_path):
    client = make_client()
    target = tmp_path / "proof.pdf"
    with aioresponses() as m:
        m.post(DEFAULT_API_URL, status=200, body=base64.b64encode(b"not a pdf"))
        with pytest.raises(InvalidDocumentFormat):
            await client.get_document_proof("1001", target)
    await client.close()
    assert not target.exists()


@pytest.mark.asyncio
async def test_signature_by_tracking_number(tmp_path):
    client = make_client()
    target = tmp_path / "sig.pdf"
    with aioresponses() as m:
        m.post(DEFAULT_API_URL, status=200, body=b"%PDF-1.5 signature")
        await client.get_signature(target, cert="9400100000000000000000")
        data = m.requests[API_KEY][0].kwargs["data"]
    await client.close()

    assert target.read_bytes() == b"%PDF-1.5 signature"
    assert data["cert"] == "9400100000000000000000"
    assert data["getinfo"] == "sig"
    assert "doc_id" not in data


@pytest.mark.asyncio
async def test_signature_requires_exactly_one_id(tmp_path):
    client = make_client()
    with pytest.raises(ValueError):
        await client.get_signature(tmp_path / "sig.pdf")
    with pytest.raises(ValueError):
        await client.get_signature(tmp_path / "sig.pdf", doc_id="1", cert="2")


@pytest.mark.asyncio
async def test_borrowed_session_left_open():
    async with aiohttp.ClientSession() as session:
        signer = LetterStreamSigner("acct-1", "secret")
        client = SubmissionClient(signer, session=session)
        await client.close()
        assert not session.closed
