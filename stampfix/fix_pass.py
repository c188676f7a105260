#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
stampfix: fix capture timestamps of dated photo/video files.

Highlights:
- Recognizes IMG_/VID_/WhatsApp IMG-…-WA/Screenshot_ names that carry a date
- JPEGs: EXIF DateTimeOriginal is rewritten (via exiftool) when the filename is earlier
- JPEGs without a usable EXIF date get their mtime set from the filename instead
- Optional --output: every dated file is moved there (flat, same name)
- --dry-run logs what would happen and touches nothing

Requirements:
- Python 3.9+
- exiftool on PATH (only for real EXIF rewrites)
- Pillow for reading EXIF
"""

import argparse
import logging
import shutil
import sys
import time
import uuid
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from stampfix import __version__
from stampfix.core.config import LOG_LEVELS, Settings, load_settings
from stampfix.core.logs import LOGGER_NAME, file_logger, setup_logging
from stampfix.schemas.media import (
    Action, EmbeddedDate, ExifStatus, FileReport, MatchResult, PassOptions, RunSummary,
)
from stampfix.services.matcher import describe, match_filename
from stampfix.services.metadata import read_embedded_date
from stampfix.services.mutator import DateWriter, ExiftoolWriter, relocate, set_modified_time
from stampfix.services.reconcile import candidate_timestamp, reconcile
from stampfix.services.scanner import scan_files

LOGGER = logging.getLogger(LOGGER_NAME)


def log(msg: str, level: int = logging.INFO) -> None:
    LOGGER.log(level, msg)


# ---------- Per-file stages ----------

def _wants_exif(match: MatchResult) -> bool:
    return match.filename.lower().endswith(".jpg") and match.date is not None


def _apply_decision(report: FileReport, opts: PassOptions, writer: DateWriter,
                    ctx: logging.LoggerAdapter) -> None:
    p = report.path
    action = report.action

    if action is Action.REWRITE_METADATA:
        if opts.dry_run:
            ctx.info("[DRY RUN] Would modify EXIF date for file: %s from %s to %s", p, report.embedded, report.target)
            return
        try:
            writer.write(p, report.target)
        except (RuntimeError, OSError) as e:
            report.errors.append(f"exif_write: {e}")
            ctx.warning("Failed to modify EXIF date for file: %s: %s", p, e)
            return
        report.applied = True
        ctx.info("Modified EXIF date for file: %s from %s to %s", p, report.embedded, report.target)

    elif action is Action.SET_MTIME:
        if opts.dry_run:
            ctx.info("[DRY RUN] Would set file modified time for file: %s to %s", p, report.target)
            return
        try:
            set_modified_time(p, report.target)
        except OSError as e:
            report.errors.append(f"mtime: {e}")
            ctx.warning("Failed to set file modified time for file: %s: %s", p, e)
            return
        report.applied = True
        ctx.info("Set file modified time for file: %s to %s", p, report.target)

    elif action is Action.NO_CHANGE:
        ctx.info("No change needed for file: %s", p)

    elif action is Action.PARSE_FAILURE:
        ctx.warning("Could not parse date for file: %s", p)


def _relocate(report: FileReport, output_dir: Path, dry_run: bool, ctx: logging.LoggerAdapter) -> None:
    p = report.path
    dest = output_dir / p.name
    if dry_run:
        ctx.info("[DRY RUN] Would move file: %s to %s", p, dest)
        return
    try:
        report.moved_to = relocate(p, output_dir)
    except OSError as e:
        report.errors.append(f"move: {e}")
        ctx.warning("Failed to move file: %s to %s: %s", p, dest, e)
        return
    ctx.info("Moved file: %s to %s", p, report.moved_to)


def process_file(path: Path, match: MatchResult, opts: PassOptions, writer: DateWriter) -> FileReport:
    """Run inspect -> reconcile -> mutate -> relocate for one dated file."""
    ctx = file_logger(opts.run_id, path.name)
    report = FileReport(path=path, match=match)
    ctx.info("File: %s | Date: %s | Time: %s", match.filename, describe(match.date), describe(match.time))

    if _wants_exif(match):
        embedded: EmbeddedDate = read_embedded_date(path)
        if embedded.status is ExifStatus.OPEN_FAILED:
            report.errors.append(f"open: {embedded.detail}")
            ctx.warning("Could not open file: %s (%s)", path, embedded.detail)
        else:
            if embedded.status is not ExifStatus.FOUND:
                ctx.warning("No EXIF date found for file: %s (%s)", path, embedded.detail)
            decision = reconcile(candidate_timestamp(match), embedded)
            report.action = decision.action
            report.target = decision.target
            report.embedded = decision.embedded
            _apply_decision(report, opts, writer, ctx)

    # Relocation doesn't depend on how the metadata stage went
    if opts.output_dir is not None:
        _relocate(report, opts.output_dir, opts.dry_run, ctx)

    return report


def _process_safely(path: Path, match: MatchResult, opts: PassOptions, writer: DateWriter) -> FileReport:
    try:
        return process_file(path, match, opts, writer)
    except Exception as e:
        # Catch-all so one bad file doesn't kill the run
        file_logger(opts.run_id, path.name).exception("Unhandled error while processing %s", path)
        return FileReport(path=path, match=match, errors=[f"unhandled: {e}"])


# ---------- Pass core ----------

def collect_dated(root: Path) -> Tuple[int, List[Tuple[Path, MatchResult]]]:
    """Scan root and keep only dated files. Returns (scanned_count, matched)."""
    files = scan_files(root)
    matched: List[Tuple[Path, MatchResult]] = []
    for p in files:
        m = match_filename(p.name)
        if m is not None:
            matched.append((p, m))
    return len(files), matched


def run_pass(opts: PassOptions, writer: DateWriter, *, workers: int = 1, heartbeat: int = 0) -> RunSummary:
    """Fan the matched set out over a thread pool and aggregate the reports."""
    scanned, matched = collect_dated(opts.input_dir)
    log(f"Matched files: {len(matched)} of {scanned} scanned")

    reports: List[FileReport] = []
    if matched:
        with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
            futures = [pool.submit(_process_safely, p, m, opts, writer) for p, m in matched]
            for fut in as_completed(futures):
                reports.append(fut.result())
                if heartbeat > 0 and len(reports) % heartbeat == 0:
                    log(f"… processed={len(reports)}/{len(matched)}")

    return RunSummary.from_reports(scanned, reports)


def log_summary(summary: RunSummary) -> None:
    log(
        f"TOTALS: scanned={summary.scanned}, matched={summary.matched}, "
        f"applied={summary.applied}, moved={summary.moved}, failed={summary.failed}"
    )
    if summary.actions:
        log("Actions this run:")
        for action, cnt in Counter(summary.actions).most_common():
            log(f"  - {action}: {cnt}")


# ---------- Main ----------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stampfix",
        description="stampfix: fix capture timestamps of dated photo/video files.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--input", required=True, help="Input directory (scanned recursively)")
    parser.add_argument("--output", default=None, help="Move every dated file here (flat)")
    parser.add_argument("--dry-run", action="store_true", default=None,
                        help="Log what would change; modify nothing")
    parser.add_argument("--config", default=None,
                        help="Path to stampfix.toml (default: $STAMPFIX_CONFIG or nearest stampfix.toml)")
    parser.add_argument("-j", "--jobs", type=int, default=None,
                        help="Worker threads (default from config; 0 = CPU count)")
    parser.add_argument("--exiftool", default=None, help="exiftool executable (default from config)")
    parser.add_argument("--logs-dir", default=None, help="Also write a rotating log file here")
    parser.add_argument("--log-level", default=None, choices=LOG_LEVELS,
                        help="Force log level (overrides -v/-q)")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase console verbosity (repeatable)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only warnings on console")
    parser.add_argument("--json-logs", action="store_true", default=None,
                        help="Write JSON-formatted logs to the log file")
    parser.add_argument("--heartbeat", type=int, default=None,
                        help="Emit a progress line every N processed files")
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.dry_run is not None:
        settings.dry_run = args.dry_run
    if args.jobs is not None:
        settings.jobs = max(0, args.jobs)
    if args.exiftool:
        settings.exiftool_path = args.exiftool
    if args.logs_dir:
        settings.logs_dir = Path(args.logs_dir).expanduser()
    if args.log_level:
        settings.log_level = args.log_level
    if args.json_logs is not None:
        settings.json_logs = args.json_logs
    if args.heartbeat is not None:
        settings.heartbeat = max(0, args.heartbeat)
    return settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except Exception as e:
        parser.error(f"could not read config: {e}")
    settings = apply_cli_overrides(settings, args)

    global LOGGER
    LOGGER = setup_logging(
        logs_dir=settings.logs_dir,
        verbose=args.verbose,
        quiet=args.quiet,
        log_level_arg=settings.log_level,
        json_logs=settings.json_logs,
    )

    input_dir = Path(args.input).expanduser()
    output_dir = Path(args.output).expanduser() if args.output else None
    opts = PassOptions(
        input_dir=input_dir,
        output_dir=output_dir,
        dry_run=settings.dry_run,
        run_id=uuid.uuid4().hex[:8],
    )

    log(f"Input directory: {input_dir}")
    if opts.dry_run:
        log("Dry run mode: no changes will be made.")
    if output_dir is not None:
        log(f"Output directory: {output_dir}")
    LOGGER.debug(f"Effective settings: {settings!r}")

    if not input_dir.is_dir():
        log(f"SKIP: input directory not found -> {input_dir}", logging.WARNING)

    if not opts.dry_run:
        if shutil.which(settings.exiftool_path) is None:
            log(f"exiftool not found ({settings.exiftool_path}); EXIF rewrites will fail", logging.WARNING)
        if output_dir is not None:
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                log(f"Could not create output directory {output_dir}: {e}", logging.WARNING)

    writer = ExiftoolWriter(settings.exiftool_path, overwrite_original=settings.overwrite_original)

    t0 = time.perf_counter()
    summary = run_pass(opts, writer, workers=settings.workers, heartbeat=settings.heartbeat)
    elapsed = time.perf_counter() - t0

    log_summary(summary)
    log(f"=== Done in {elapsed:.1f} seconds (run {opts.run_id}) ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
