# stampfix/services/mutator.py
# Side effects: EXIF rewrite via exiftool, mtime correction, relocation.
# Callers own dry-run gating; everything here acts for real.
from __future__ import annotations
import os
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Protocol

from stampfix.services.metadata import EXIF_DATETIME_FORMAT


def format_exif_datetime(when: datetime) -> str:
    return when.strftime(EXIF_DATETIME_FORMAT)


class DateWriter(Protocol):
    """Anything that can stamp a capture date into a file's metadata."""

    def write(self, path: Path, when: datetime) -> None:
        """Raise RuntimeError when the write did not happen."""
        ...


class ExiftoolWriter:
    """DateWriter backed by the exiftool CLI (no timeout: a hung exiftool hangs its task)."""

    def __init__(self, executable: str = "exiftool", overwrite_original: bool = False) -> None:
        self.executable = executable
        self.overwrite_original = overwrite_original

    def command(self, path: Path, when: datetime) -> List[str]:
        cmd = [self.executable, f"-DateTimeOriginal={format_exif_datetime(when)}"]
        if self.overwrite_original:
            cmd.append("-overwrite_original")
        cmd.append(str(path))
        return cmd

    def write(self, path: Path, when: datetime) -> None:
        cmd = self.command(path, when)
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, errors="replace", check=False)
        except OSError as e:
            raise RuntimeError(f"failed to run {self.executable}: {e}") from e
        if proc.returncode != 0:
            raise RuntimeError(proc.stderr.strip() or f"exiftool rc={proc.returncode}")

    def __repr__(self) -> str:
        return f"ExiftoolWriter(executable={self.executable!r}, overwrite_original={self.overwrite_original})"


def set_modified_time(path: Path, when: datetime) -> None:
    """mtime := when (naive values are taken as UTC); atime is left as it was."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    st = os.stat(path)
    mtime_ns = int(when.timestamp()) * 1_000_000_000
    os.utime(path, ns=(st.st_atime_ns, mtime_ns))


def relocate(path: Path, output_dir: Path) -> Path:
    """Flat move into output_dir keeping the name; an existing file there is replaced."""
    dest = output_dir / path.name
    path.replace(dest)
    return dest
