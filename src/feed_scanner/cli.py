#!/usr/bin/env python3
"""
Command line entrypoint: run the scanner in a live browser, or manage the saved list.
"""

import argparse
import asyncio
import json
import re
import sys
from pathlib import Path
from typing import Optional

from feed_scanner.core.config import ConfigManager
from feed_scanner.core.logging import setup_logger
from feed_scanner.core.models import MatchRecord
from feed_scanner.core.storage.export import export_matches, format_match
from feed_scanner.core.storage.match_store import MatchStore, StoreError
from feed_scanner.core.text_filter import normalize_ranges

COMMANDS = {
    "start": "START_SCAN",
    "stop": "STOP_SCAN",
    "status": "GET_STATUS",
    "clear": "CLEAR_LIST",
    "list": "GET_MATCHES",
}

HELP_TEXT = "commands: start | stop | status | list | clear | export [DIR] | quit"
SHUTDOWN_GRACE_S = 10.0


def build_store(config: ConfigManager) -> MatchStore:
    return MatchStore(config.scanner.store_path, config.scanner.store_slot)


def build_control(config: ConfigManager, driver, store: Optional[MatchStore] = None):
    """Wire extractor, classifier, scanner and control surface around a driver."""
    from feed_scanner.browser.metadata import MetadataExtractor
    from feed_scanner.classifier.adapter import FrameClassifierAdapter
    from feed_scanner.classifier.insight import InsightFaceClassifier
    from feed_scanner.control import ControlInterface
    from feed_scanner.scanner.loop import FeedScanner

    s = config.scanner
    ranges = normalize_ranges(s.script_ranges)
    store = store or build_store(config)
    classifier = InsightFaceClassifier(model_name=s.model_name, model_root=s.model_root, det_size=s.det_size)
    adapter = FrameClassifierAdapter(driver, classifier, threshold=s.threshold, target_category=s.target_category)
    scanner = FeedScanner(
        driver,
        MetadataExtractor(driver, ranges),
        adapter,
        store,
        interval_ms=s.scan_interval_ms,
        script_ranges=ranges,
    )
    return ControlInterface(scanner, store)


def should_auto_start(url: str, pattern: str) -> bool:
    return bool(pattern) and re.search(pattern, url or "") is not None


def _print_response(command: str, response: dict) -> None:
    if command == "list" and response.get("ok"):
        matches = response.get("matches") or []
        if not matches:
            print("No matches yet.")
        for item in matches:
            print(format_match(MatchRecord.from_dict(item)))
        return
    print(json.dumps(response, ensure_ascii=False))


async def _run_session(control, auto_start: bool, delay_s: float, logger) -> None:
    if auto_start:
        async def _delayed_start():
            await asyncio.sleep(delay_s)
            response = await control.handle({"type": "START_SCAN"})
            logger.info(f"Auto-start: {response}")

        auto_task = asyncio.create_task(_delayed_start())
    else:
        auto_task = None

    print(HELP_TEXT)
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            break
        parts = line.strip().split()
        if not parts:
            continue
        command, args = parts[0].lower(), parts[1:]
        if command in ("quit", "exit"):
            break
        if command == "export":
            response = await control.handle({"type": "GET_MATCHES"})
            if not response.get("ok"):
                print(json.dumps(response, ensure_ascii=False))
                continue
            records = [MatchRecord.from_dict(item) for item in response["matches"]]
            target = export_matches(records, Path(args[0]) if args else Path.cwd())
            print(f"Exported {len(records)} match(es) to {target}")
            continue
        if command not in COMMANDS:
            print(HELP_TEXT)
            continue
        response = await control.handle({"type": COMMANDS[command]})
        _print_response(command, response)

    if auto_task is not None and not auto_task.done():
        auto_task.cancel()
    control.scanner.stop()
    still_running = await control.scanner.wait_idle(timeout=SHUTDOWN_GRACE_S)
    if still_running:
        logger.warning(f"Abandoning {still_running} in-flight pipeline(s) after {SHUTDOWN_GRACE_S}s")


def cmd_run(config: ConfigManager, args) -> int:
    from feed_scanner.browser.driver import BrowserManager

    logger = setup_logger("feed_scanner.cli", config.log_level)
    url = args.url or config.scanner.feed_url
    for line in config.summary_lines():
        logger.info(line)
    browser = BrowserManager(config.browser)
    try:
        browser.open(url)
        control = build_control(config, browser.driver)
        auto_start = not args.no_auto_start and should_auto_start(url, config.scanner.auto_start_pattern)
        asyncio.run(_run_session(control, auto_start, config.scanner.auto_start_delay_s, logger))
    except KeyboardInterrupt:
        print("Interrupted")
    finally:
        browser.close()
    return 0


async def _offline(store: MatchStore, command: str, out_dir: Optional[str]) -> int:
    if command == "clear":
        await store.clear()
        print("Match list cleared")
        return 0
    records = await store.list()
    if command == "export":
        target = export_matches(records, Path(out_dir) if out_dir else Path.cwd())
        print(f"Exported {len(records)} match(es) to {target}")
        return 0
    if not records:
        print("No matches yet.")
    for record in records:
        print(format_match(record))
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(prog="feed-scanner", description="Feed video scanner")
    parser.add_argument("--config-dir", default=None, help="Directory holding settings.json / credentials.env")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Open the feed in Chrome and accept control commands on stdin")
    run.add_argument("--url", default=None, help="Feed URL (defaults to FEED_URL / settings)")
    run.add_argument("--no-auto-start", action="store_true", help="Do not start scanning automatically")

    sub.add_parser("list", help="Print saved matches")
    sub.add_parser("clear", help="Empty the saved match list")
    export = sub.add_parser("export", help="Write saved matches to a timestamped JSON file")
    export.add_argument("--out", default=None, help="Output directory (default: current directory)")

    args = parser.parse_args(argv)
    config = ConfigManager(Path(args.config_dir) if args.config_dir else None).load_all()

    if args.command == "run":
        return cmd_run(config, args)
    try:
        return asyncio.run(_offline(build_store(config), args.command, getattr(args, "out", None)))
    except StoreError as e:
        print(f"Store error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
