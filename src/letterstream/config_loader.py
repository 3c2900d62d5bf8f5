# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Client configuration model and INI loader.

``ClientConfig`` is the single constructor-time settings object for
``LetterStreamClient``. It can be built directly from keyword arguments or
loaded from an INI file with environment variable overrides.

Example:
    Configuration file format (letterstream.ini)::

        [letterstream]
        api_id = 12345
        api_key = my-secret-key
        debug = 1
        base_url = https://secure.letterstream.com/apis/index.php
        request_timeout = 30

        [mode]
        send_on = filecount_limit
        value = 50

        [queue]
        backend = sqlite
        db_path = /var/lib/letterstream/queue.db
        table = letter_queue

    Environment variables (all prefixed with ``LS_``) take precedence
    over the file when set: ``LS_API_ID``, ``LS_API_KEY``, ``LS_DEBUG``,
    ``LS_BASE_URL``, ``LS_REQUEST_TIMEOUT``, ``LS_SEND_ON``,
    ``LS_MODE_VALUE``, ``LS_QUEUE_BACKEND``, ``LS_QUEUE_DB_PATH``,
    ``LS_QUEUE_TABLE``, ``LS_WORK_DIR``.

    Loading it::

        config = load_client_config("letterstream.ini")
        client = LetterStreamClient(config)
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError
from .logger import get_logger
from .models import ErrorCallback, OnCount, OnCreate, OnInterval, OnSize, ResultCallback, parse_flush_mode
from .persistence import DEFAULT_TABLE
from .signer import VALID_DEBUG_LEVELS
from .submission import DEFAULT_API_URL, DEFAULT_TIMEOUT

logger = get_logger("ClientConfig")


class ClientConfig(BaseModel):
    """Settings for ``LetterStreamClient``.

    Attributes:
        api_id: Account id (also accepted as ``api_user`` / ``apiId``).
        api_key: Shared secret (also accepted as ``api_pass`` / ``apiKey``).
        debug: Optional remote debug level, 1-3.
        mode: Flush mode; a dict such as ``{"send_on": "filecount_limit",
            "value": 10}`` is accepted.
        queue_backend: ``memory`` or ``sqlite``.
        queue_db_path: SQLite file for the ``sqlite`` backend.
        queue_table: Queue table name for the ``sqlite`` backend.
        base_url: API endpoint.
        request_timeout: Total per-request timeout in seconds.
        work_dir: Parent directory for temporary batch files.
        auto_doc_id: Generate ``UniqueDocId`` when a letter has none.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True, populate_by_name=True)

    api_id: Annotated[
        str,
        Field(min_length=1, validation_alias=AliasChoices("api_id", "apiId", "api_user", "apiUser")),
    ]
    api_key: Annotated[
        str,
        Field(min_length=1, validation_alias=AliasChoices("api_key", "apiKey", "api_pass", "apiPass")),
    ]
    debug: int | None = None
    mode: Annotated[OnCreate | OnCount | OnSize | OnInterval, Field(default_factory=OnCreate)]
    queue_backend: Literal["memory", "sqlite"] = "memory"
    queue_db_path: str | None = None
    queue_table: str = DEFAULT_TABLE
    base_url: str = DEFAULT_API_URL
    request_timeout: Annotated[float, Field(gt=0)] = DEFAULT_TIMEOUT
    work_dir: str | None = None
    auto_doc_id: bool = False

    @field_validator("debug")
    @classmethod
    def debug_level_allowed(cls, v: int | None) -> int | None:
        if v is not None and v not in VALID_DEBUG_LEVELS:
            raise ValueError("debug must be one of 1, 2, 3")
        return v

    @field_validator("mode", mode="before")
    @classmethod
    def normalise_mode(cls, v: Any) -> Any:
        return parse_flush_mode(v)

    @model_validator(mode="after")
    def sqlite_requires_path(self) -> "ClientConfig":
        if self.queue_backend == "sqlite" and not self.queue_db_path:
            raise ValueError("queue_db_path is required when queue_backend is 'sqlite'")
        return self


def build_config(**kwargs: Any) -> ClientConfig:
    """Validate keyword settings, raising ``ConfigurationError`` on failure."""
    try:
        return ClientConfig(**kwargs)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


def load_client_config(
    config_path: str | os.PathLike | None = None,
    success_cb: ResultCallback | None = None,
    error_cb: ErrorCallback | None = None,
) -> ClientConfig:
    """Load settings from an INI file and ``LS_*`` environment variables.

    Callbacks cannot be expressed in a file, so interval mode takes them
    as arguments.

    Args:
        config_path: Path to the INI file, or None for environment only.
        success_cb: Result callback for interval mode.
        error_cb: Error callback for interval mode.

    Raises:
        FileNotFoundError: If ``config_path`` is given but does not exist.
        ConfigurationError: If the resulting settings are invalid.
    """
    parser = configparser.ConfigParser()
    if config_path is not None:
        if not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        parser.read(config_path)

    def get(env: str, section: str, option: str) -> str | None:
        value = os.getenv(env)
        if value is None and parser.has_option(section, option):
            value = parser.get(section, option)
        value = value.strip() if value is not None else None
        return value or None

    settings: dict[str, Any] = {
        "api_id": get("LS_API_ID", "letterstream", "api_id") or get("LS_API_USER", "letterstream", "api_user"),
        "api_key": get("LS_API_KEY", "letterstream", "api_key") or get("LS_API_PASS", "letterstream", "api_pass"),
        "debug": get("LS_DEBUG", "letterstream", "debug"),
        "base_url": get("LS_BASE_URL", "letterstream", "base_url"),
        "request_timeout": get("LS_REQUEST_TIMEOUT", "letterstream", "request_timeout"),
        "work_dir": get("LS_WORK_DIR", "letterstream", "work_dir"),
        "auto_doc_id": get("LS_AUTO_DOC_ID", "letterstream", "auto_doc_id"),
        "queue_backend": get("LS_QUEUE_BACKEND", "queue", "backend"),
        "queue_db_path": get("LS_QUEUE_DB_PATH", "queue", "db_path"),
        "queue_table": get("LS_QUEUE_TABLE", "queue", "table"),
    }
    settings = {key: value for key, value in settings.items() if value is not None}
    for key in ("api_id", "api_key"):
        settings.setdefault(key, "")

    send_on = get("LS_SEND_ON", "mode", "send_on")
    if send_on:
        mode: dict[str, Any] = {"send_on": send_on}
        value = get("LS_MODE_VALUE", "mode", "value")
        if value is not None:
            mode["value"] = value
        if send_on == "interval":
            mode["success_cb"] = success_cb
            mode["error_cb"] = error_cb
        settings["mode"] = mode

    logger.debug("Loaded client settings: %s", sorted(k for k in settings if k != "api_key"))
    return build_config(**settings)
