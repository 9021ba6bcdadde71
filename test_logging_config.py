"""
test_logging_config.py - Logging setup checks.

Usage:
    python test_logging_config.py
"""

from __future__ import annotations

import json
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from logging_config import JsonLineFormatter, level_from_env, setup_logging


def _symbols() -> tuple[str, str, str]:
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    try:
        "✓✗═".encode(sys.stdout.encoding or "utf-8")
        return "✓", "✗", "═"
    except Exception:
        return "[OK]", "[FAIL]", "="


PASS, FAIL, LINE = _symbols()


def main() -> int:
    passed = 0
    failed = 0

    def check(name: str, condition: bool) -> None:
        nonlocal passed, failed
        if condition:
            print(f"    {PASS} {name}")
            passed += 1
        else:
            print(f"    {FAIL} {name}")
            failed += 1

    print(LINE * 62)
    print("  Logging Config Tests")
    print(LINE * 62)

    record = logging.LogRecord(
        name="parse",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='parse_complete | property=%r | detail="%s"',
        args=("Alesia House", 'quoted "text"'),
        exc_info=None,
    )
    line = JsonLineFormatter().format(record)
    payload = json.loads(line)
    check("JSON line parses even with quotes in the message", payload["module"] == "parse")
    check("Message formatted with args", "Alesia House" in payload["message"] and 'quoted "text"' in payload["message"])
    check("Level name included", payload["level"] == "INFO")

    previous = os.environ.get("LOG_LEVEL")
    try:
        os.environ["LOG_LEVEL"] = "debug"
        check("LOG_LEVEL read case-insensitively", level_from_env() == logging.DEBUG)
        os.environ["LOG_LEVEL"] = "chatty"
        check("Unknown LOG_LEVEL falls back", level_from_env(logging.WARNING) == logging.WARNING)
    finally:
        if previous is None:
            os.environ.pop("LOG_LEVEL", None)
        else:
            os.environ["LOG_LEVEL"] = previous

    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        setup_logging(level=logging.WARNING, json_format=True)
        check("Root level set", root.level == logging.WARNING)
        check(
            "Single JSON handler installed",
            len(root.handlers) == 1 and isinstance(root.handlers[0].formatter, JsonLineFormatter),
        )
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    print(f"\n{LINE * 62}")
    print(f"  Results: {passed}/{passed + failed} passed")
    if failed == 0:
        print(f"  Logging: COMPLETE {PASS}")
    else:
        print(f"  Logging: {failed} FAILED")
    print(f"{LINE * 62}")
    return failed


def test_logging_config_suite() -> None:
    assert main() == 0


if __name__ == "__main__":
    raise SystemExit(1 if main() else 0)
