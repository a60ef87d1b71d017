"""
Human readable sizes and durations.
"""

_SIZE_UNITS = ["B", "KiB", "MiB", "GiB", "TiB"]


def format_size(num_bytes: int) -> str:
    """Render a byte count with a binary unit, e.g. '1.5 MiB'."""
    size = float(num_bytes)
    for unit in _SIZE_UNITS:
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{num_bytes} B"


def format_duration(seconds: float) -> str:
    """Render seconds as '3.2s', '4m05s' or '1h02m'."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m{secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h{minutes:02d}m"
