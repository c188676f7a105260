# stampfix/services/scanner.py
from __future__ import annotations
import os
import stat
from pathlib import Path
from typing import List


def scan_files(root: Path) -> List[Path]:
    """
    Recursively list every regular file under root.
    Symlinks are neither followed nor listed. Entries that can't be read
    (permission errors, files vanishing mid-walk) are skipped without noise.
    """
    out: List[Path] = []
    # os.walk swallows listdir errors unless onerror is given
    for dirpath, _dirs, files in os.walk(root):
        for name in files:
            p = Path(dirpath) / name
            try:
                mode = p.lstat().st_mode
            except OSError:
                continue
            if stat.S_ISREG(mode):
                out.append(p)
    return out
