"""Loguru setup shared by the API process."""

from __future__ import annotations

import logging
import os
from contextvars import ContextVar
from sys import stdout
from typing import Any

from loguru import logger

request_id_ctx_var: ContextVar[str] = ContextVar("request_id", default="-")
user_id_ctx_var: ContextVar[str] = ContextVar("user_id", default="-")


def _patch_record(record: dict[str, Any]) -> None:
    record["extra"].setdefault("request_id", request_id_ctx_var.get())
    record["extra"].setdefault("user_id", user_id_ctx_var.get())


def setup_logging() -> None:
    """Route stdlib logging to INFO and emit Loguru records as JSON lines."""

    logging.basicConfig(level=logging.INFO)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logger.remove()
    logger.configure(patcher=_patch_record)
    logger.add(
        stdout,
        level=os.getenv("LOG_LEVEL", "INFO"),
        backtrace=False,
        diagnose=False,
        serialize=True,
    )
