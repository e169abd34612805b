"""Human-readable duration formatting."""


def _split(seconds: int) -> tuple[int, int, int]:
    seconds = max(int(seconds), 0)
    return seconds // 3600, (seconds % 3600) // 60, seconds % 60


def format_time(seconds: int) -> str:
    """
    Format a duration compactly.

    Examples:
        >>> format_time(3725)
        '1h 2m'
        >>> format_time(125)
        '2m 5s'
        >>> format_time(42)
        '42s'
    """
    hours, minutes, secs = _split(seconds)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_time_detailed(seconds: int) -> str:
    """Format a duration as zero-padded HH:MM:SS (hours may exceed 99)."""
    hours, minutes, secs = _split(seconds)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
