#!/usr/bin/env python3
"""
Run the API under uvicorn using the HOST / PORT / RELOAD settings
"""

import logging

import uvicorn

from employee_manager.config import Settings
from employee_manager.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def main():
    setup_logging()
    server = Settings.SERVER
    logger.info("Starting Employee Task Manager API on %s:%s (reload=%s)",
                server['host'], server['port'], server['reload'])

    # Keep uvicorn from replacing the handlers installed by setup_logging
    uvicorn.run(
        "main:app",
        host=server['host'],
        port=server['port'],
        reload=server['reload'],
        log_level=Settings.LOGGING['level'].lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
