# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""HTTP transport to the LetterStream API.

``SubmissionClient`` owns a single ``aiohttp.ClientSession`` (created on
first use) and sends every request as a POST to one fixed endpoint. Each
request carries the signer's auth fields plus the operation's own fields:

- batch upload: multipart form with the archive in ``multi_file``
- status lookup: ``<kind>status`` = comma-joined, URL-escaped ids
- proof / signature: ``doc_id`` or ``cert`` plus ``getinfo``

A 2xx JSON body is decoded and returned. Anything else raises
``SubmissionError``; there is no automatic retry.

Example:
    Querying batch status::

        signer = LetterStreamSigner("my-id", "my-key")
        async with SubmissionClient(signer) as api:
            status = await api.get_batch_status("1001", "1002")
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import os
from pathlib import Path
from typing import Any
from urllib.parse import quote

import aiohttp

from .errors import InvalidDocumentFormat, SubmissionError
from .logger import get_logger
from .packager import PackagedBatch
from .signer import Signer

DEFAULT_API_URL = "https://secure.letterstream.com/apis/index.php"
DEFAULT_TIMEOUT = 30.0

STATUS_KINDS = ("batch", "job", "doc", "account")
PDF_MAGIC = b"%PDF-1."

logger = get_logger("SubmissionClient")


def validate_pdf(data: bytes) -> None:
    """Raise ``InvalidDocumentFormat`` unless ``data`` starts with the PDF magic."""
    if not data.startswith(PDF_MAGIC):
        raise InvalidDocumentFormat()


class SubmissionClient:
    """Sends batches and lookups to the remote API.

    Attributes:
        signer: Produces the auth fields for every request.
        base_url: API endpoint all requests are posted to.
        timeout: Total per-request timeout in seconds.
    """

    def __init__(
        self,
        signer: Signer,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ):
        """Initialize the client.

        Args:
            signer: Auth field generator.
            base_url: API endpoint.
            timeout: Total request timeout in seconds.
            session: Optional externally owned session. When given, ``close()``
                leaves it open.
        """
        self.signer = signer
        self.base_url = base_url
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "SubmissionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ------------------------------------------------------------------ core
    async def _post(self, data: Any) -> bytes:
        """POST ``data`` and return the raw body of a 2xx response."""
        session = self._get_session()
        try:
            async with session.post(self.base_url, data=data) as resp:
                body = await resp.read()
                if not 200 <= resp.status < 300:
                    text = body.decode("utf-8", errors="replace")
                    logger.warning("API returned HTTP %s: %s", resp.status, text[:500])
                    raise SubmissionError(resp.status, text)
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("API request to %s failed: %s", self.base_url, exc)
            raise SubmissionError(None, str(exc) or exc.__class__.__name__) from exc

    @staticmethod
    def _decode_json(body: bytes) -> Any:
        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise SubmissionError(200, f"Invalid JSON response: {body[:200]!r}") from exc

    async def _post_json(self, fields: dict[str, str]) -> Any:
        return self._decode_json(await self._post(fields))

    # ------------------------------------------------------------- operations
    async def submit(self, packaged: PackagedBatch) -> Any:
        """Upload a packaged batch and return the decoded JSON response."""
        form = aiohttp.FormData()
        for name, value in self.signer.auth_fields().items():
            form.add_field(name, value)
        logger.info(
            "Submitting batch of %d letters (%d attachments)",
            len(packaged.letters),
            len(packaged.attachments),
        )
        with open(packaged.archive_path, "rb") as fh:
            form.add_field(
                "multi_file",
                fh,
                filename=os.path.basename(packaged.archive_path),
                content_type="application/zip",
            )
            body = await self._post(form)
        return self._decode_json(body)

    async def query(self, kind: str, ids: list[str] | tuple[str, ...]) -> Any:
        """Look up the status of batches, jobs, documents or accounts.

        Raises:
            ValueError: ``kind`` is unknown or ``ids`` is empty.
        """
        if kind not in STATUS_KINDS:
            raise ValueError(f"Invalid type: {kind!r}")
        if not ids:
            raise ValueError(f"Missing {kind} ID.")
        fields = self.signer.auth_fields()
        fields[f"{kind}status"] = ",".join(quote(str(i), safe="") for i in ids)
        return await self._post_json(fields)

    async def get_batch_status(self, *ids: str) -> Any:
        return await self.query("batch", ids)

    async def get_job_status(self, *ids: str) -> Any:
        return await self.query("job", ids)

    async def get_document_status(self, *ids: str) -> Any:
        return await self.query("doc", ids)

    async def get_account_status(self, *ids: str) -> Any:
        return await self.query("account", ids)

    async def get_document_proof(self, doc_id: str, save_as: str | os.PathLike) -> Path:
        """Download the proof PDF of a document to ``save_as``.

        The service returns the proof base64-encoded.

        Raises:
            ValueError: ``doc_id`` or ``save_as`` is empty.
            InvalidDocumentFormat: The decoded body is not a PDF; nothing
                is written.
        """
        if not doc_id:
            raise ValueError("Missing document ID.")
        if not save_as:
            raise ValueError("Missing filename.")
        fields = self.signer.auth_fields()
        fields.update({"doc_id": str(doc_id), "getinfo": "proof"})
        body = await self._post(fields)
        try:
            data = base64.b64decode(body)
        except (binascii.Error, ValueError) as exc:
            raise InvalidDocumentFormat("Proof is not valid base64.") from exc
        return await self._save_pdf(data, save_as)

    async def get_signature(
        self,
        save_as: str | os.PathLike,
        doc_id: str | None = None,
        cert: str | None = None,
    ) -> Path:
        """Download the delivery signature PDF by document id or tracking number.

        Raises:
            ValueError: Neither or both of ``doc_id`` / ``cert`` given, or
                ``save_as`` is empty.
            InvalidDocumentFormat: The body is not a PDF; nothing is written.
        """
        if bool(doc_id) == bool(cert):
            raise ValueError("Provide exactly one of document or tracking ID.")
        if not save_as:
            raise ValueError("Missing filename.")
        fields = self.signer.auth_fields()
        if doc_id:
            fields["doc_id"] = str(doc_id)
        else:
            fields["cert"] = str(cert)
        fields["getinfo"] = "sig"
        body = await self._post(fields)
        return await self._save_pdf(body, save_as)

    @staticmethod
    async def _save_pdf(data: bytes, save_as: str | os.PathLike) -> Path:
        validate_pdf(data)
        path = Path(save_as)
        await asyncio.to_thread(path.write_bytes, data)
        return path
