import os

import piexif
import pytest
from PIL import Image

from photorename.metadata import MetadataUnavailable


class FakeReader:
    """Maps file names to raw date strings; unknown names have no metadata."""

    def __init__(self, dates):
        self.dates = dict(dates)
        self.calls = []

    def __call__(self, file_path):
        name = os.path.basename(file_path)
        self.calls.append(name)
        if name not in self.dates:
            raise MetadataUnavailable("no CreateDate available")
        return self.dates[name]


@pytest.fixture
def make_files(tmp_path):
    def _make(*names):
        for name in names:
            (tmp_path / name).write_text(name)
        return tmp_path
    return _make


@pytest.fixture
def make_jpeg(tmp_path):
    def _make(name, date_original=None):
        exif = {"0th": {}, "Exif": {}}
        if date_original:
            exif["Exif"][piexif.ExifIFD.DateTimeOriginal] = date_original.encode()
        path = tmp_path / name
        Image.new("RGB", (8, 8), color=(200, 120, 40)).save(path, format="JPEG", exif=piexif.dump(exif))
        return path
    return _make


@pytest.fixture
def fake_reader():
    return FakeReader
