# stampfix/services/matcher.py
# Classifies filenames against the camera/phone naming conventions that embed a
# capture date. Order matters: the first pattern that matches wins.

from __future__ import annotations
import re
from typing import Optional, Tuple

from stampfix.schemas.media import MatchResult, NamingPattern

UNKNOWN = "unknown"

# Whole-name, case-sensitive. Group 1 = YYYYMMDD, group 2 (if any) = HHMMSS.
_PATTERNS: Tuple[Tuple[NamingPattern, "re.Pattern[str]"], ...] = (
    # IMG_20240710_200842.jpg, IMG_20240710_200842123_HDR.jpg
    (NamingPattern.IMG_WITH_TIME, re.compile(r"IMG_(\d{8})_(\d{6})\d*.*\.jpg")),
    # VID_20240710_200842.mp4
    (NamingPattern.VID_WITH_TIME, re.compile(r"VID_(\d{8})_(\d{6})\d*.*\.mp4")),
    # WhatsApp: IMG-20240710-WA0001.jpg (date only)
    (NamingPattern.IMG_DATE_ONLY, re.compile(r"IMG-(\d{8})-WA\d+.*\.jpg")),
    # Screenshot_20240710-200842.jpg
    (NamingPattern.SCREENSHOT, re.compile(r"Screenshot_(\d{8})-(\d{6}).*\.jpg")),
)


def _group(m: "re.Match[str]", idx: int) -> Optional[str]:
    if m.re.groups < idx:
        return None
    return m.group(idx)


def match_filename(name: str) -> Optional[MatchResult]:
    """Return the first naming convention that fits name, or None."""
    for pattern, rx in _PATTERNS:
        m = rx.fullmatch(name)
        if m:
            return MatchResult(
                filename=name,
                pattern=pattern,
                date=_group(m, 1),
                time=_group(m, 2),
            )
    return None


def describe(value: Optional[str]) -> str:
    return value if value is not None else UNKNOWN
