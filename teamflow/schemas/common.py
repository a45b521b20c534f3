from datetime import datetime, timezone
from typing import Optional

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Les dates sont stockées en UTC naïf"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
