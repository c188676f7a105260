# stampfix/services/metadata.py
# Read-only lookup of the embedded capture date (EXIF DateTimeOriginal) via Pillow.
from __future__ import annotations
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from PIL import ExifTags, Image, JpegImagePlugin

from stampfix.schemas.media import EmbeddedDate, ExifStatus

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

_exif_dt_re = re.compile(r"^\d{4}:\d{2}:\d{2} \d{2}:\d{2}:\d{2}$")


def parse_exif_datetime(value: Union[str, bytes, None]) -> Optional[datetime]:
    """Parse 'YYYY:MM:DD HH:MM:SS' (NUL padding tolerated); None if it isn't one."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    s = str(value).replace("\x00", "").strip()

    # Sentinels like "0000:00:00 00:00:00" fail strptime and count as missing
    if not _exif_dt_re.match(s):
        return None
    try:
        return datetime.strptime(s, EXIF_DATETIME_FORMAT)
    except ValueError:
        return None


def _date_time_original(exif: Image.Exif):
    """DateTimeOriginal lives in the Exif sub-IFD; some writers put it in IFD0."""
    tag = ExifTags.Base.DateTimeOriginal
    raw = exif.get_ifd(ExifTags.IFD.Exif).get(tag)
    if raw is None:
        raw = exif.get(tag)
    return raw


def _open_image(fh) -> Image.Image:
    """Image.open, except huge panoramas still get their header read."""
    try:
        return Image.open(fh)
    except Image.DecompressionBombError:
        # the pixel-count guard lives in Image.open; the EXIF lookup never decodes pixels
        fh.seek(0)
        return JpegImagePlugin.JpegImageFile(fh)


def read_embedded_date(path: Path) -> EmbeddedDate:
    """Never writes to the file."""
    try:
        fh = path.open("rb")
    except OSError as e:
        return EmbeddedDate(status=ExifStatus.OPEN_FAILED, detail=str(e))

    with fh:
        try:
            with _open_image(fh) as im:
                exif = im.getexif()
                raw = _date_time_original(exif) if exif else None
        except Exception as e:
            # Pillow raises a zoo of types for broken containers/IFDs
            return EmbeddedDate(status=ExifStatus.UNREADABLE, detail=f"{type(e).__name__}: {e}")

    if not exif:
        return EmbeddedDate(status=ExifStatus.MISSING, detail="no EXIF block")
    if raw is None:
        return EmbeddedDate(status=ExifStatus.MISSING, detail="no DateTimeOriginal")
    dt = parse_exif_datetime(raw)
    if dt is None:
        return EmbeddedDate(status=ExifStatus.MISSING, detail=f"unparseable DateTimeOriginal {raw!r}")
    return EmbeddedDate(status=ExifStatus.FOUND, value=dt)
