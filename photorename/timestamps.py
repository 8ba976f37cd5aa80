import datetime
import logging
import re


class NoParseMatch(ValueError):
    """None of the known capture-date layouts matched."""


# strptime alone is lenient (unpadded fields, 'Z', '+0200'), so the exact layout is checked first
WITH_OFFSET = re.compile(r"\d{4}:\d{2}:\d{2} \d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}")
WITHOUT_OFFSET = re.compile(r"\d{4}:\d{2}:\d{2} \d{2}:\d{2}:\d{2}")


def _parse_with_offset(raw: str) -> datetime.datetime:
    # e.g. 2021:05:01 10:00:00+02:00
    if not WITH_OFFSET.fullmatch(raw):
        raise ValueError(f"{raw!r} does not match YYYY:MM:DD HH:MM:SS+HH:MM")
    return datetime.datetime.strptime(raw, "%Y:%m:%d %H:%M:%S%z")


def _parse_local(raw: str) -> datetime.datetime:
    # e.g. 2021:05:01 10:00:00, no offset recorded by the camera
    if not WITHOUT_OFFSET.fullmatch(raw):
        raise ValueError(f"{raw!r} does not match YYYY:MM:DD HH:MM:SS")
    parsed = datetime.datetime.strptime(raw, "%Y:%m:%d %H:%M:%S").astimezone()
    logging.info("Parsed date %s in local timezone as it has no offset", raw, extra={'target': raw})
    return parsed


# priority order, explicit offsets first
PARSERS = (
    _parse_with_offset,
    _parse_local,
)


def parse_capture_time(raw: str) -> datetime.datetime:
    """
    Parse a raw EXIF-style date string into an aware datetime.
    Raises NoParseMatch when no layout fits.
    """
    value = (raw or "").strip()
    for parser in PARSERS:
        try:
            return parser(value)
        except ValueError:
            continue
    raise NoParseMatch(f"error parsing create date {raw!r}")
