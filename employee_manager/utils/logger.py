# employee_manager/utils/logger.py

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from employee_manager.config import Settings


def setup_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> None:
    """
    Configure the root logger with:
    - console handler
    - combined.log with everything at the configured level
    - error.log with ERROR and above

    Call this ONCE at startup.
    """
    level_name = level or Settings.LOGGING['level']
    log_dir = Path(log_dir or Settings.LOGGING['log_dir'])
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level_name)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    max_bytes = Settings.LOGGING['max_log_size']
    backups = Settings.LOGGING['backup_count']

    combined = RotatingFileHandler(log_dir / "combined.log", maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    combined.setFormatter(fmt)
    root.addHandler(combined)

    errors = RotatingFileHandler(log_dir / "error.log", maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    errors.setLevel(logging.ERROR)
    errors.setFormatter(fmt)
    root.addHandler(errors)

    # APScheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
