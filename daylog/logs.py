# -*- coding: utf-8 -*-
"""Activity log setup.

All modules log through ``logging.getLogger(__name__)``. ``configure_logging``
attaches a stderr handler and a size-bounded rotating file under the data root
so the recent activity (syncs, merges, annotation calls) can be read back via
``GET /api/logs``.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILENAME = "activity.log"
MAX_LOG_BYTES = 512 * 1024
BACKUP_COUNT = 7

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(log_dir: Path, level: str = "INFO") -> Path:
    """Idempotently install the stderr and activity-file handlers on the ``daylog`` logger."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME

    root = logging.getLogger("daylog")
    root.setLevel(level)
    formatter = logging.Formatter(_FORMAT)

    has_file = any(
        isinstance(h, RotatingFileHandler) and Path(h.baseFilename) == log_path.resolve()
        for h in root.handlers
    )
    if not has_file:
        file_handler = RotatingFileHandler(
            log_path, maxBytes=MAX_LOG_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    return log_path


def read_log_tail(log_dir: Path, max_lines: int = 200) -> list[str]:
    log_path = log_dir / LOG_FILENAME
    if not log_path.exists():
        return []
    lines = log_path.read_text(encoding="utf-8", errors="replace").splitlines()
    return lines[-max_lines:]

