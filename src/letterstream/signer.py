# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Authentication fields attached to every API request.

The LetterStream API authenticates each POST with a nonce ``t`` and a hash
``h`` derived from it and the shared API key. The transform must match the
service bit for bit:

    t = <epoch seconds><3-digit random suffix>
    h = md5_hex(mime_base64(t[-6:] + api_key + t[:6]) minus trailing newline)

``Signer`` is the pluggable seam; ``LetterStreamSigner`` is the concrete
scheme.
"""

from __future__ import annotations

import base64
import hashlib
import random
import time
from collections.abc import Callable

VALID_DEBUG_LEVELS = (1, 2, 3)


class Signer:
    """Produces the auth form fields for a single request."""

    def auth_fields(self) -> dict[str, str]:
        raise NotImplementedError


class LetterStreamSigner(Signer):
    """Nonce-and-hash signer used by the LetterStream API.

    Attributes:
        api_id: Account identifier sent as ``a``.
        api_key: Shared secret mixed into the hash; never sent.
        debug: Optional debug level (1, 2 or 3) sent as ``debug``.
    """

    def __init__(
        self,
        api_id: str,
        api_key: str,
        debug: int | None = None,
        clock: Callable[[], float] = time.time,
        rng: Callable[[int, int], int] = random.randint,
    ):
        if debug is not None and debug not in VALID_DEBUG_LEVELS:
            raise ValueError(f"Invalid debug value: {debug!r}")
        self.api_id = api_id
        self.api_key = api_key
        self.debug = debug
        self._clock = clock
        self._rng = rng

    def nonce(self) -> str:
        return f"{int(self._clock())}{self._rng(0, 999):03d}"

    def signature(self, nonce: str) -> str:
        raw = (nonce[-6:] + self.api_key + nonce[:6]).encode("utf-8")
        # MIME base64: a newline every 76 chars, final newline dropped.
        encoded = base64.encodebytes(raw)[:-1]
        return hashlib.md5(encoded).hexdigest()

    def auth_fields(self) -> dict[str, str]:
        nonce = self.nonce()
        fields = {
            "a": self.api_id,
            "h": self.signature(nonce),
            "t": nonce,
            "responseformat": "json",
        }
        if self.debug:
            fields["debug"] = str(self.debug)
        return fields
