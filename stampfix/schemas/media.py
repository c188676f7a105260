# stampfix/schemas/media.py
from __future__ import annotations
from collections import Counter
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class NamingPattern(str, Enum):
    IMG_WITH_TIME = "img_with_time"
    VID_WITH_TIME = "vid_with_time"
    IMG_DATE_ONLY = "img_date_only"
    SCREENSHOT = "screenshot"


class MatchResult(BaseModel):
    """Digits captured from a dated filename. None means 'unknown'."""
    model_config = ConfigDict(frozen=True)

    filename: str
    pattern: NamingPattern
    date: Optional[str] = None   # YYYYMMDD
    time: Optional[str] = None   # HHMMSS


class ExifStatus(str, Enum):
    FOUND = "found"
    MISSING = "missing"          # container readable, no usable DateTimeOriginal
    UNREADABLE = "unreadable"    # not an image container Pillow can read
    OPEN_FAILED = "open_failed"  # file could not be opened at all


class EmbeddedDate(BaseModel):
    status: ExifStatus
    value: Optional[datetime] = None
    detail: Optional[str] = None


class Action(str, Enum):
    REWRITE_METADATA = "rewrite_metadata"
    SET_MTIME = "set_mtime"
    NO_CHANGE = "no_change"
    PARSE_FAILURE = "parse_failure"
    SKIPPED = "skipped"


class Decision(BaseModel):
    action: Action
    target: Optional[datetime] = None
    embedded: Optional[datetime] = None


class FileReport(BaseModel):
    path: Path
    match: MatchResult
    action: Action = Action.SKIPPED
    target: Optional[datetime] = None
    embedded: Optional[datetime] = None
    applied: bool = False
    errors: List[str] = []
    moved_to: Optional[Path] = None


class PassOptions(BaseModel):
    input_dir: Path
    output_dir: Optional[Path] = None
    dry_run: bool = False
    run_id: str = "-"


class RunSummary(BaseModel):
    scanned: int = 0
    matched: int = 0
    actions: Dict[str, int] = {}
    applied: int = 0
    moved: int = 0
    failed: int = 0

    @classmethod
    def from_reports(cls, scanned: int, reports: List[FileReport]) -> "RunSummary":
        actions = Counter(r.action.value for r in reports)
        return cls(
            scanned=scanned,
            matched=len(reports),
            actions=dict(actions),
            applied=sum(1 for r in reports if r.applied),
            moved=sum(1 for r in reports if r.moved_to is not None),
            failed=sum(1 for r in reports if r.errors),
        )
