import logging
from pathlib import Path
from typing import Optional

import pytest
from PIL import ExifTags, Image


def write_jpeg(path: Path, date_time_original: Optional[str] = None) -> Path:
    """Tiny real JPEG, optionally carrying DateTimeOriginal."""
    path.parent.mkdir(parents=True, exist_ok=True)
    im = Image.new("RGB", (8, 8), (200, 30, 30))
    if date_time_original is None:
        im.save(path, "JPEG")
    else:
        exif = Image.Exif()
        exif[ExifTags.Base.DateTimeOriginal] = date_time_original
        im.save(path, "JPEG", exif=exif)
    return path


class RecordingWriter:
    """DateWriter that remembers calls instead of running exiftool."""

    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def write(self, path, when):
        self.calls.append((Path(path).name, when))
        if self.fail:
            raise RuntimeError("exiftool rc=1")


@pytest.fixture
def make_jpeg():
    return write_jpeg


@pytest.fixture(autouse=True)
def _reset_stampfix_logger():
    # main() installs handlers bound to the current stderr
    yield
    logger = logging.getLogger("stampfix")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True
