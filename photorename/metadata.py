"""Capture-date readers.

A reader is any callable taking a file path and returning the raw capture
date string of that file. Readers raise MetadataUnavailable when the file
has no usable date; the planner treats that as a per-file skip.
"""

import json
import logging
import os
import struct
import subprocess
from shutil import which
from typing import Any, Optional

import piexif
from PIL import Image, UnidentifiedImageError

from photorename import RenameAbort


class MetadataUnavailable(Exception):
    """The file carries no readable capture date."""


# EXIF tag ids
EXIF_IFD_POINTER = 0x8769
TAG_DATETIME = 0x0132
TAG_DATETIME_ORIGINAL = 0x9003
TAG_DATETIME_DIGITIZED = 0x9004
TAG_OFFSET_TIME_ORIGINAL = 0x9011

EXIFTOOL_DATE_FIELDS = ("CreateDate", "DateTimeOriginal")


class ExiftoolReader:
    """Reads the capture date by running ``exiftool`` once per file."""

    def __init__(self, executable: str = "exiftool", timeout: Optional[float] = None):
        if which(executable) is None:
            raise RenameAbort(f"'{executable}' not found. Please install it before using this tool.")
        self.executable = executable
        self.timeout = timeout

    def run_json(self, file_path: str) -> list[dict[str, Any]]:
        cmd = [self.executable, "-time:all", "-struct", "-j", file_path]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise MetadataUnavailable(f"exiftool timed out after {e.timeout}s") from e
        if proc.returncode != 0:
            raise MetadataUnavailable(f"exiftool exited with {proc.returncode}: {proc.stderr.strip()}")
        if not proc.stdout.strip():
            raise MetadataUnavailable("exiftool returned no data")
        try:
            data = json.loads(proc.stdout)
        except json.JSONDecodeError as e:
            raise MetadataUnavailable(f"invalid JSON from exiftool: {e}") from e
        return data if isinstance(data, list) else [data]

    def __call__(self, file_path: str) -> str:
        records = self.run_json(file_path)
        record = records[0] if records else None
        if not isinstance(record, dict):
            raise MetadataUnavailable("no metadata record")
        for field in EXIFTOOL_DATE_FIELDS:
            value = record.get(field)
            if isinstance(value, str) and value.strip():
                logging.debug("Using %s = %s", field, value, extra={'target': os.path.basename(file_path)})
                return value
        raise MetadataUnavailable("no CreateDate available")


def _as_text(value) -> Optional[str]:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if isinstance(value, str):
        value = value.strip("\x00 ")
        return value or None
    return None


def _pick_date(exif_ifd: dict, zeroth_ifd: dict) -> Optional[str]:
    date = (
        _as_text(exif_ifd.get(TAG_DATETIME_ORIGINAL))
        or _as_text(exif_ifd.get(TAG_DATETIME_DIGITIZED))
        or _as_text(zeroth_ifd.get(TAG_DATETIME))
    )
    if not date:
        return None
    offset = _as_text(exif_ifd.get(TAG_OFFSET_TIME_ORIGINAL))
    if offset and offset[0] in "+-":
        return f"{date}{offset}"
    return date


class ExifReader:
    """Reads EXIF in-process: Pillow first, piexif for files Pillow cannot open."""

    def _read_pillow(self, file_path: str) -> Optional[str]:
        with Image.open(file_path) as img:
            exif = img.getexif()
            return _pick_date(dict(exif.get_ifd(EXIF_IFD_POINTER)), dict(exif))

    def _read_piexif(self, file_path: str) -> Optional[str]:
        exif = piexif.load(file_path)
        return _pick_date(exif.get("Exif") or {}, exif.get("0th") or {})

    def __call__(self, file_path: str) -> str:
        name = os.path.basename(file_path)
        try:
            date = self._read_pillow(file_path)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logging.debug("Pillow could not read EXIF: %s", e, extra={'target': name})
            date = None
        if date is None:
            try:
                date = self._read_piexif(file_path)
            except (OSError, ValueError, KeyError, struct.error) as e:
                raise MetadataUnavailable(f"could not read EXIF: {e}") from e
        if date is None:
            raise MetadataUnavailable("no DateTimeOriginal available")
        return date


READERS = {
    "exiftool": ExiftoolReader,
    "exif": ExifReader,
}


def make_reader(name: str):
    try:
        return READERS[name]()
    except KeyError:
        raise ValueError(f"unknown reader {name!r}") from None
