from __future__ import annotations


def format_time(duration: int | float) -> str:
    """Formats the given duration in milliseconds into HH:MM:SS, dropping the hours when zero"""
    seconds = max(int(duration // 1000), 0)
    hours, seconds = divmod(seconds, 60 * 60)
    minutes, seconds = divmod(seconds, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:d}:{seconds:02d}"
