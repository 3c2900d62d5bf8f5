# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Batching client for the LetterStream print API.

``LetterStreamClient`` ties the pieces together::

    create_letter -> LetterValidator -> LetterQueue.enqueue
                  -> FlushTrigger.should_flush -> send_queue
                  -> BatchPackager.build -> SubmissionClient.submit

In ``letter_created``, ``filecount_limit`` and ``filesize_limit`` modes
the flush runs inside the ``create_letter`` call that triggered it, and
its result or error reaches that caller. In ``interval`` mode an
``IntervalScheduler`` flushes in the background and hands results and
errors to the configured callbacks.

Delivery is at-most-once: a flush drains the queue before packaging, and
letters from a failed flush are not put back.

Example:
    Count-triggered batching::

        client = LetterStreamClient(
            api_id="12345",
            api_key="secret",
            mode={"send_on": "filecount_limit", "value": 2},
        )
        async with client:
            await client.create_letter({...})   # queued, returns 1
            result = await client.create_letter({...})   # flushes
"""

from __future__ import annotations

import asyncio
import inspect
import os
from typing import Any, Callable

from .config_loader import ClientConfig, build_config
from .errors import ConfigurationError, DuplicateSkipped, PackagingError, SubmissionError
from .letter_queue import LetterQueue, MemoryQueueStorage, QueueStorage
from .logger import get_logger
from .models import OnInterval
from .packager import BatchPackager
from .persistence import SqliteQueueStorage
from .prometheus import LetterMetrics
from .scheduler import IntervalScheduler
from .signer import LetterStreamSigner
from .submission import SubmissionClient
from .triggers import FlushTrigger
from .validator import LetterValidator


async def _invoke(callback: Callable[[Any], Any], arg: Any) -> None:
    result = callback(arg)
    if inspect.isawaitable(result):
        await result


class LetterStreamClient:
    """Queues letters and submits them to the API in batches.

    Attributes:
        config: Validated client settings.
        queue: Pending letters.
        validator: Submission validator bound to ``queue``.
        trigger: Flush policy for the configured mode.
        packager: Builds upload archives.
        submission: HTTP transport.
        metrics: Prometheus collector.
        logger: Logger instance for diagnostic output.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        storage: QueueStorage | None = None,
        submission: SubmissionClient | None = None,
        packager: BatchPackager | None = None,
        metrics: LetterMetrics | None = None,
        logger=None,
        **settings: Any,
    ):
        """Initialize the client.

        Args:
            config: Prebuilt settings. When omitted, ``settings`` are
                validated into a ``ClientConfig``.
            storage: Queue backend overriding ``config.queue_backend``.
            submission: Transport overriding the default one.
            packager: Packager overriding the default one.
            metrics: Prometheus collector. If None, creates a new instance.
            logger: Custom logger instance. If None, uses default logger.
            **settings: ``ClientConfig`` fields (``api_id``, ``api_key``,
                ``mode``, ...).

        Raises:
            ConfigurationError: Settings are missing or invalid.
        """
        if config is None:
            config = build_config(**settings)
        elif settings:
            raise ConfigurationError("Pass either a ClientConfig or keyword settings, not both.")
        self.config = config
        self.mode = config.mode
        self.logger = logger or get_logger("LetterStreamClient")

        if storage is None:
            if config.queue_backend == "sqlite":
                storage = SqliteQueueStorage(config.queue_db_path, config.queue_table)
            else:
                storage = MemoryQueueStorage()
        self.queue = LetterQueue(storage)
        self.validator = LetterValidator(self.queue, auto_doc_id=config.auto_doc_id)
        self.trigger = FlushTrigger.for_mode(self.mode)
        self.packager = packager or BatchPackager(config.work_dir)
        self.submission = submission or SubmissionClient(
            LetterStreamSigner(config.api_id, config.api_key, config.debug),
            base_url=config.base_url,
            timeout=config.request_timeout,
        )
        self.metrics = metrics or LetterMetrics()

        self._flush_lock = asyncio.Lock()
        self._scheduler: IntervalScheduler | None = None
        if isinstance(self.mode, OnInterval):
            self._scheduler = IntervalScheduler(self.mode.value, self._interval_tick, logger=self.logger)

    # ----------------------------------------------------------------- queue
    async def create_letter(self, content: dict[str, Any]) -> Any:
        """Validate a letter, queue it, and flush if the mode says so.

        Args:
            content: Letter fields keyed by manifest column name;
                ``PDFFileName`` is the path to the PDF.

        Returns:
            The decoded API response when this call triggered a flush that
            sent a batch, otherwise the queue length right after this
            letter was added, or None when the letter was skipped as a
            duplicate. A concurrent flush may already have sent the letter
            when the queue length is returned.

        Raises:
            LetterValidationError: The letter is invalid; nothing is queued.
            PackagingError: A triggered flush could not build the archive.
            SubmissionError: A triggered flush was rejected by the API.
        """
        try:
            letter = await self.validator.validate(content)
            count = await self.queue.enqueue(letter)
        except DuplicateSkipped as exc:
            self.logger.warning("%s Skipping.", exc)
            self.metrics.inc_duplicate()
            return None

        self.metrics.inc_queued()
        self.metrics.set_pending(count)
        self.logger.debug("Queued letter %s (queue length %d)", letter.unique_doc_id, count)

        if self._scheduler is not None:
            self._scheduler.ensure_started()
            return count
        if await self.trigger.should_flush(self.queue):
            sent, result = await self._flush()
            if sent:
                return result
        return count

    async def queue_count(self) -> int:
        return await self.queue.count()

    async def queue_size(self) -> int:
        """Return the cumulative attachment size of queued letters in bytes."""
        return await self.queue.cumulative_file_size()

    # ----------------------------------------------------------------- flush
    async def send_queue(self) -> Any:
        """Drain the queue and submit it as one batch.

        Returns:
            0 if the queue was empty, otherwise the decoded API response.

        Raises:
            PackagingError: The archive could not be built.
            SubmissionError: The API call failed.
        """
        sent, result = await self._flush()
        return result if sent else 0

    async def _flush(self) -> tuple[bool, Any]:
        """Run one flush; returns ``(False, None)`` when the queue was empty."""
        async with self._flush_lock:
            letters = await self.queue.drain()
            self.metrics.set_pending(await self.queue.count())
            if not letters:
                self.logger.debug("Flush requested on an empty queue")
                return False, None

            self.logger.info("Flushing %d letters", len(letters))
            try:
                packaged = await asyncio.to_thread(self.packager.build, letters)
            except PackagingError:
                self.metrics.inc_error("packaging")
                self.logger.warning("Packaging failed; %d drained letters dropped", len(letters))
                raise

            try:
                with packaged:
                    result = await self.submission.submit(packaged)
            except SubmissionError:
                self.metrics.inc_error("submission")
                self.logger.warning("Submission failed; %d drained letters dropped", len(letters))
                raise

            self.metrics.inc_submitted()
            self.logger.info("Batch of %d letters submitted", len(letters))
            return True, result

    async def _interval_tick(self) -> None:
        try:
            sent, result = await self._flush()
        except Exception as exc:
            self.logger.warning("Interval flush failed: %s", exc)
            await _invoke(self.mode.error_cb, exc)
            return
        if sent:
            await _invoke(self.mode.success_cb, result)

    # ---------------------------------------------------------------- lookups
    async def get_batch_status(self, *ids: str) -> Any:
        return await self.submission.get_batch_status(*ids)

    async def get_job_status(self, *ids: str) -> Any:
        return await self.submission.get_job_status(*ids)

    async def get_document_status(self, *ids: str) -> Any:
        return await self.submission.get_document_status(*ids)

    async def get_account_status(self, *ids: str) -> Any:
        return await self.submission.get_account_status(*ids)

    async def get_document_proof(self, doc_id: str, save_as: str | os.PathLike):
        return await self.submission.get_document_proof(doc_id, save_as)

    async def get_signature(self, save_as: str | os.PathLike, doc_id: str | None = None, cert: str | None = None):
        return await self.submission.get_signature(save_as, doc_id=doc_id, cert=cert)

    # -------------------------------------------------------------- lifecycle
    async def close(self) -> None:
        """Stop the interval scheduler and release the HTTP session.

        Letters still queued are left in place; with the ``sqlite``
        backend they are picked up by the next client.
        """
        if self._scheduler is not None:
            await self._scheduler.stop()
        await self.submission.close()

    async def __aenter__(self) -> "LetterStreamClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
