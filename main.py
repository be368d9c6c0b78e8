"""WSGI entrypoint for the Zellinotes recipe service.

Containerized deployments serve the ``app`` object below with Gunicorn; local
development can use ``flask --app main run``.
"""

import logging
import os
import sys

from zellinotes import create_app

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

app = create_app()


__all__ = ["app"]
