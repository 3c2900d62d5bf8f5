# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pending-letter queue with pluggable storage.

The queue is the only shared mutable state in the client. ``LetterQueue``
wraps a ``QueueStorage`` backend and serialises ``enqueue`` and ``drain``
behind an ``asyncio.Lock`` so that an interval flush can never interleave
with a caller adding a letter.

Backends:
    - MemoryQueueStorage: in-process ordered list (default)
    - SqliteQueueStorage: durable table, see ``letterstream.persistence``

Example:
    Using the in-memory queue::

        queue = LetterQueue()
        await queue.enqueue(letter)
        batch = await queue.drain()
"""

from __future__ import annotations

import asyncio
import os

from .errors import DocumentNameConflict, DuplicateSkipped
from .models import Letter


class QueueStorage:
    """Abstract base class defining the queue storage interface.

    Implementations must preserve insertion order across ``drain`` and
    report the cumulative attachment size of the letters they hold.
    """

    async def enqueue(self, letter: Letter, file_size: int) -> None:
        """Append a letter whose attachment measures ``file_size`` bytes."""
        raise NotImplementedError

    async def drain(self) -> list[Letter]:
        """Return every stored letter in insertion order and empty the store."""
        raise NotImplementedError

    async def count(self) -> int:
        """Return the number of stored letters."""
        raise NotImplementedError

    async def cumulative_size(self) -> int:
        """Return the summed attachment size of the stored letters."""
        raise NotImplementedError

    async def contains(self, unique_doc_id: str) -> bool:
        """Return True if a letter with this document id is stored."""
        raise NotImplementedError

    async def document_path_for(self, file_name: str) -> str | None:
        """Return the path of a stored letter whose attachment is named ``file_name``."""
        raise NotImplementedError


class MemoryQueueStorage(QueueStorage):
    """Ordered in-process list; contents are lost when the process exits."""

    def __init__(self) -> None:
        self._letters: list[Letter] = []
        self._size = 0

    async def enqueue(self, letter: Letter, file_size: int) -> None:
        self._letters.append(letter)
        self._size += file_size

    async def drain(self) -> list[Letter]:
        letters, self._letters = self._letters, []
        self._size = 0
        return letters

    async def count(self) -> int:
        return len(self._letters)

    async def cumulative_size(self) -> int:
        return self._size

    async def contains(self, unique_doc_id: str) -> bool:
        return any(letter.unique_doc_id == unique_doc_id for letter in self._letters)

    async def document_path_for(self, file_name: str) -> str | None:
        for letter in self._letters:
            if letter.document_file_name == file_name:
                return letter.document_path
        return None


class LetterQueue:
    """Mutually exclusive access to a ``QueueStorage`` backend.

    Attributes:
        storage: The backend holding the pending letters.
    """

    def __init__(self, storage: QueueStorage | None = None):
        self.storage = storage or MemoryQueueStorage()
        self._lock = asyncio.Lock()

    async def enqueue(self, letter: Letter) -> int:
        """Append ``letter`` and return the new queue length.

        The attachment is measured at enqueue time, so the size total
        reflects the file as it was when the letter was accepted.

        Raises:
            DuplicateSkipped: A letter with the same document id is queued.
            DocumentNameConflict: A queued letter attaches a different file
                with the same basename.
            OSError: If the document cannot be stat'ed.
        """
        file_size = os.path.getsize(letter.document_path)
        async with self._lock:
            if await self.storage.contains(letter.unique_doc_id):
                raise DuplicateSkipped(letter.unique_doc_id)
            queued_path = await self.storage.document_path_for(letter.document_file_name)
            if queued_path is not None and queued_path != letter.document_path:
                raise DocumentNameConflict(letter.document_file_name, letter.document_path, queued_path)
            await self.storage.enqueue(letter, file_size)
            return await self.storage.count()

    async def drain(self) -> list[Letter]:
        """Atomically take every pending letter and reset the queue.

        Draining an empty queue returns an empty list.
        """
        async with self._lock:
            return await self.storage.drain()

    async def count(self) -> int:
        return await self.storage.count()

    async def cumulative_file_size(self) -> int:
        return await self.storage.cumulative_size()

    async def contains(self, unique_doc_id: str) -> bool:
        return await self.storage.contains(unique_doc_id)

    async def document_path_for(self, file_name: str) -> str | None:
        return await self.storage.document_path_for(file_name)
