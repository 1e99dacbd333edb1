"""Timestamp formatting with YYYY/MM/DD/HH/mm/ss tokens"""

from datetime import datetime


DEFAULT_FORMAT = 'YYYY-MM-DD HH:mm'


def format_timestamp(when: datetime, pattern: str = DEFAULT_FORMAT) -> str:
    """Substitute date tokens in pattern, e.g. 'YYYY-MM-DD HH:mm' -> '2025-10-11 16:08'."""
    return (
        pattern
        .replace('YYYY', f"{when.year:04d}")
        .replace('MM', f"{when.month:02d}")
        .replace('DD', f"{when.day:02d}")
        .replace('HH', f"{when.hour:02d}")
        .replace('mm', f"{when.minute:02d}")
        .replace('ss', f"{when.second:02d}")
    )
