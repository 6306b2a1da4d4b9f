from __future__ import annotations

ATTRIBUTES = "bynamectl.attributes.v1"
CHECK_RUN = "bynamectl.check-run.v1"
CONFIG = "bynamectl.config.v1"
HISTORY = "bynamectl.history.v1"
