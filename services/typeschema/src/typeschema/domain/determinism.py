from datetime import datetime, timezone
import os

FIXED_TIMESTAMP = "1970-01-01T00:00:00+00:00"


def is_deterministic() -> bool:
    return os.getenv("TYPESCHEMA_DETERMINISTIC") == "1"


def timestamp() -> str:
    if is_deterministic():
        return FIXED_TIMESTAMP
    return datetime.now(timezone.utc).isoformat()
