# stampfix/core/config.py
# Loads stampfix settings from a TOML file (defaults + overrides).
# - Reads --config, then STAMPFIX_CONFIG, then looks for stampfix.toml from CWD upwards
# - Missing file => defaults; a file that fails to parse raises tomllib.TOMLDecodeError
# - CLI flags are applied on top of the returned Settings by fix_pass.main()

from __future__ import annotations
from pathlib import Path
import os
from typing import Optional
import tomli as tomllib  # py3.11+: tomllib in stdlib; using tomli for compatibility


CONFIG_NAME = "stampfix.toml"
CONFIG_ENV = "STAMPFIX_CONFIG"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# -------------------- Defaults (used if TOML omits keys) --------------------
_DEFAULTS = {
    "run": {
        "dry_run": False,
        "jobs": 0,            # 0 = one worker per CPU
        "heartbeat": 500,     # progress line every N finished files (0 = off)
    },
    "exiftool": {
        "path": "exiftool",
        "overwrite_original": False,  # True => no *_original backups next to rewritten files
    },
    "logging": {
        "dir": "",            # empty => console only
        "json": False,
        "level": "",          # empty => derived from -v / -q
    },
}


# -------------------- Read + merge TOML --------------------

def find_config_path(explicit: Optional[str] = None) -> Path | None:
    """Find stampfix.toml without user input.
    Priority:
      1) explicit path (--config)
      2) STAMPFIX_CONFIG
      3) ./stampfix.toml, then each parent of CWD
    """
    if explicit:
        return Path(explicit).expanduser()

    cfg_env = os.getenv(CONFIG_ENV)
    if cfg_env:
        p = Path(cfg_env).expanduser()
        if p.exists():
            return p

    cur = Path.cwd()
    while True:
        candidate = cur / CONFIG_NAME
        if candidate.exists():
            return candidate
        if cur.parent == cur:
            break  # reached filesystem root
        cur = cur.parent

    return None


def load_config(path: Path | None) -> dict:
    """Load TOML from path, or return {} if there is nothing to load."""
    if path is None or not path.exists():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


# -------------------- Settings --------------------
class Settings:
    """
    Lightweight container for effective run settings.
    Values come from _DEFAULTS merged with the TOML sections of the same name.
    """
    def __init__(self, cfg: dict, source: Path | None = None) -> None:
        run = {**_DEFAULTS["run"], **(cfg.get("run") or {})}
        exif = {**_DEFAULTS["exiftool"], **(cfg.get("exiftool") or {})}
        logs = {**_DEFAULTS["logging"], **(cfg.get("logging") or {})}

        self.source: Path | None = source

        self.dry_run: bool = bool(run.get("dry_run", False))
        self.jobs: int = max(0, int(run.get("jobs", 0)))
        self.heartbeat: int = max(0, int(run.get("heartbeat", 500)))

        self.exiftool_path: str = str(exif.get("path") or "exiftool").strip()
        self.overwrite_original: bool = bool(exif.get("overwrite_original", False))

        _dir = str(logs.get("dir") or "").strip()
        self.logs_dir: Path | None = Path(_dir).expanduser() if _dir else None
        self.json_logs: bool = bool(logs.get("json", False))
        _level = str(logs.get("level") or "").strip().upper()
        if _level and _level not in LOG_LEVELS:
            raise ValueError(f"[logging] level must be one of {', '.join(LOG_LEVELS)}, got {logs.get('level')!r}")
        self.log_level: str | None = _level or None

    @property
    def workers(self) -> int:
        """Thread pool size; jobs=0 means one worker per CPU."""
        return self.jobs or (os.cpu_count() or 1)

    def __repr__(self) -> str:
        return (
            f"Settings(source={self.source}, dry_run={self.dry_run}, jobs={self.jobs}, "
            f"heartbeat={self.heartbeat}, exiftool_path={self.exiftool_path}, "
            f"overwrite_original={self.overwrite_original}, logs_dir={self.logs_dir}, "
            f"json_logs={self.json_logs}, log_level={self.log_level})"
        )


def load_settings(explicit: Optional[str] = None) -> Settings:
    """Resolve the config file (if any) and build Settings from it."""
    path = find_config_path(explicit)
    return Settings(load_config(path), source=path if path and path.exists() else None)
