from datetime import datetime, timezone

def now_trimmed():
    """Current UTC datetime without microseconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)
