from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import NoReturn

from flask import Flask
from sqlalchemy import inspect
from sqlalchemy.exc import ProgrammingError

from pastebin.db import SessionLocal, get_engine
from pastebin.services.paste_service import PasteService


logger = logging.getLogger(__name__)

_worker_started = False
_worker_lock = threading.Lock()


def _purge_loop(app: Flask) -> NoReturn:
    """Background loop that periodically deletes time-expired pastes."""

    interval = float(app.config.get("PURGE_INTERVAL_SECONDS", 60))
    paste_service = PasteService(session_factory=SessionLocal)

    with app.app_context():
        while True:
            try:
                # Skip work until migrations have created the table.
                if not inspect(get_engine()).has_table("pastes"):
                    logger.info(
                        "Purge worker: 'pastes' table not found; skipping cycle",
                        extra={
                            "event": "purge_worker_no_table",
                            "correlation_id": "purge-worker",
                        },
                    )
                else:
                    paste_service.purge_expired(now=datetime.now(timezone.utc))
            except ProgrammingError:
                logger.warning(
                    "Purge worker: database schema not ready; skipping cycle",
                    extra={
                        "event": "purge_worker_schema_error",
                        "correlation_id": "purge-worker",
                    },
                )
            except Exception:
                logger.exception(
                    "Error in purge worker loop",
                    extra={
                        "event": "purge_worker_error",
                        "correlation_id": "purge-worker",
                    },
                )
            finally:
                SessionLocal.remove()

            time.sleep(interval)


def start_purge_worker(app: Flask) -> None:
    """
    Start the purge worker in a background thread.

    This function is idempotent and will only start a single worker thread.
    """

    global _worker_started
    with _worker_lock:
        if _worker_started:
            return

        thread = threading.Thread(
            target=_purge_loop,
            args=(app,),
            name="purge-worker",
            daemon=True,
        )
        thread.start()
        _worker_started = True
