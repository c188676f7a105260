# stampfix/services/reconcile.py
from __future__ import annotations
from datetime import datetime
from typing import Optional

from stampfix.schemas.media import Action, Decision, EmbeddedDate, ExifStatus, MatchResult


def candidate_timestamp(match: MatchResult) -> Optional[datetime]:
    """
    Filename-derived capture time:
      - date + time when the name carries a time
      - date at midnight otherwise
    None when the date is unknown or the digits aren't a real calendar moment
    (e.g. IMG_20231345_...).
    """
    if match.date is None:
        return None
    try:
        if match.time is not None:
            return datetime.strptime(f"{match.date} {match.time}", "%Y%m%d %H%M%S")
        return datetime.strptime(match.date, "%Y%m%d")
    except ValueError:
        return None


def reconcile(candidate: Optional[datetime], embedded: EmbeddedDate) -> Decision:
    """
    Decide the corrective action:
      1) embedded date present: rewrite only if the filename moment is strictly earlier
      2) no usable embedded date: fall back to correcting the file's mtime
    An unparseable candidate never triggers a mutation.
    """
    if embedded.status is ExifStatus.FOUND:
        if candidate is None:
            return Decision(action=Action.PARSE_FAILURE, embedded=embedded.value)
        if candidate < embedded.value:
            return Decision(action=Action.REWRITE_METADATA, target=candidate, embedded=embedded.value)
        return Decision(action=Action.NO_CHANGE, embedded=embedded.value)

    if embedded.status is ExifStatus.OPEN_FAILED:
        return Decision(action=Action.SKIPPED)

    if candidate is None:
        return Decision(action=Action.PARSE_FAILURE)
    return Decision(action=Action.SET_MTIME, target=candidate)
