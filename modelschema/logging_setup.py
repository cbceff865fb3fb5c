"""
ModelSchema: Logging Configuration
===================================

What:  One-call logging setup for applications embedding the library.
How:   Configures the root logger with a timestamped format on stdout and
       lowers the verbosity of SQLAlchemy and the SQLite driver.
When:  Called once by the host application at startup. The library itself
       only creates module loggers (`logging.getLogger(__name__)`).

Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
"""

import logging
import sys
from typing import Optional

from modelschema.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure logging for the whole process.

    Args:
        level: Level name; defaults to settings.log_level
    """
    level_name = (level or settings.log_level).upper()

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are noisy at DEBUG/INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
