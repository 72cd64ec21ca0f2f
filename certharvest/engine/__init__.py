"""Fetch pipeline: target source, connection policy, workers and dispatcher."""

import logging
import sys

logger = logging.getLogger("certharvest")
logger.setLevel(logging.WARNING)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s", "%H:%M:%S"))
    logger.addHandler(handler)
