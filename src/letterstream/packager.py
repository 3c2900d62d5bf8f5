# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Serialisation of a drained batch into the upload archive.

A batch becomes two artefacts inside a private temporary directory:

- ``manifest.csv``: one row per letter, header row = ``MANIFEST_COLUMNS``
- ``batch.zip``: the manifest plus every unique PDF, stored under its
  basename only

``PackagedBatch`` owns that directory. Use it as a context manager (or
call ``cleanup()``) so the files disappear whether or not the upload
succeeds.

Example:
    Packaging and uploading a batch::

        with BatchPackager().build(letters) as packaged:
            await submission.submit(packaged)
"""

from __future__ import annotations

import csv
import io
import os
import shutil
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .errors import PackagingError
from .logger import get_logger
from .models import MANIFEST_COLUMNS, Letter

MANIFEST_NAME = "manifest.csv"
ARCHIVE_NAME = "batch.zip"

logger = get_logger("BatchPackager")


@dataclass
class PackagedBatch:
    """A batch ready for upload.

    Attributes:
        letters: The drained letters, in queue order.
        attachments: Unique document paths, in first-seen order.
        work_dir: Temporary directory owned by this batch.
        manifest_path: Path of the CSV manifest.
        archive_path: Path of the zip archive to upload.
    """

    letters: list[Letter]
    attachments: list[str]
    work_dir: Path
    manifest_path: Path
    archive_path: Path
    _cleaned: bool = field(default=False, repr=False)

    def cleanup(self) -> None:
        """Remove the batch's temporary directory. Safe to call twice."""
        if self._cleaned:
            return
        shutil.rmtree(self.work_dir, ignore_errors=True)
        self._cleaned = True

    def __enter__(self) -> "PackagedBatch":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()


def unique_attachments(letters: Sequence[Letter]) -> list[str]:
    """Return each distinct ``document_path`` once, preserving order."""
    return list(dict.fromkeys(letter.document_path for letter in letters))


def write_manifest(letters: Sequence[Letter], target: io.TextIOBase) -> None:
    writer = csv.DictWriter(target, fieldnames=MANIFEST_COLUMNS, lineterminator="\r\n")
    writer.writeheader()
    for letter in letters:
        writer.writerow(letter.to_manifest_row())


def read_manifest(source: str | os.PathLike | bytes) -> list[dict[str, str]]:
    """Parse a manifest from a file path or raw CSV bytes.

    Raises:
        ValueError: If the header does not match ``MANIFEST_COLUMNS``.
    """
    if isinstance(source, bytes):
        text = source.decode("utf-8")
    else:
        text = Path(source).read_text(encoding="utf-8")
    reader = csv.DictReader(io.StringIO(text, newline=""))
    if tuple(reader.fieldnames or ()) != MANIFEST_COLUMNS:
        raise ValueError(f"Unexpected manifest header: {reader.fieldnames}")
    return list(reader)


class BatchPackager:
    """Builds ``PackagedBatch`` objects from drained letters.

    Attributes:
        work_dir: Parent directory for per-batch temporary directories.
            None uses the system temp directory.
    """

    def __init__(self, work_dir: str | os.PathLike | None = None):
        self.work_dir = work_dir

    def build(self, letters: Sequence[Letter]) -> PackagedBatch:
        """Write the manifest and archive for ``letters``.

        Blocking file I/O; the client runs it in a worker thread.

        Raises:
            PackagingError: The batch is empty, two different documents
                share a basename, or any file operation fails. Temporary
                files are removed before raising.
        """
        letters = list(letters)
        if not letters:
            raise PackagingError("Cannot package an empty batch.")

        attachments = unique_attachments(letters)
        names: dict[str, str] = {}
        for path in attachments:
            name = os.path.basename(path)
            if name in names or name == MANIFEST_NAME:
                raise PackagingError(
                    f"Attachment name '{name}' is used by more than one document "
                    f"({names.get(name, MANIFEST_NAME)}, {path})."
                )
            names[name] = path

        try:
            work_dir = Path(tempfile.mkdtemp(prefix="letterstream-", dir=self.work_dir))
        except OSError as exc:
            raise PackagingError(f"Error creating temporary directory: {exc}") from exc

        manifest_path = work_dir / MANIFEST_NAME
        archive_path = work_dir / ARCHIVE_NAME
        try:
            with manifest_path.open("w", encoding="utf-8", newline="") as fh:
                write_manifest(letters, fh)
            with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                zf.write(manifest_path, MANIFEST_NAME)
                for name, path in names.items():
                    zf.write(path, name)
        except (OSError, zipfile.BadZipFile, ValueError) as exc:
            shutil.rmtree(work_dir, ignore_errors=True)
            raise PackagingError(f"Error writing temporary zip file: {exc}") from exc

        logger.debug(
            "Packaged %d letters with %d attachments into %s",
            len(letters),
            len(attachments),
            archive_path,
        )
        return PackagedBatch(
            letters=letters,
            attachments=attachments,
            work_dir=work_dir,
            manifest_path=manifest_path,
            archive_path=archive_path,
        )
