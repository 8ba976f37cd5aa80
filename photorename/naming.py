import datetime

from photorename import DATETIME_FORMAT, DUPLICATE_SUFFIX


def split_extension(filename: str) -> tuple[str, str]:
    """Split at the last dot; the extension keeps its dot and its case."""
    dot = filename.rfind('.')
    if dot < 0:
        return filename, ''
    return filename[:dot], filename[dot:]


def stem(filename: str) -> str:
    return split_extension(filename)[0]


def format_datetime(timestamp: datetime.datetime) -> str:
    return timestamp.strftime(DATETIME_FORMAT)


def format_filename(timestamp: datetime.datetime, extension: str, collision_index: int = 0) -> str:
    """
    Canonical name: YYYY-MM-DD_HH-MM-SS, one '-' per collision, then the extension as given.
    """
    if collision_index < 0:
        raise ValueError(f"collision index must be >= 0, got {collision_index}")
    return f"{format_datetime(timestamp)}{DUPLICATE_SUFFIX * collision_index}{extension}"


def is_already_canonical(original_name: str, timestamp: datetime.datetime) -> bool:
    # Trailing duplicate suffixes are ignored entirely, so a lone file ending in
    # "---" also counts as canonical.
    trimmed = stem(original_name).rstrip(DUPLICATE_SUFFIX)
    return trimmed == format_datetime(timestamp)
