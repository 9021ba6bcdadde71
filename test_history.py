"""
test_history.py - Command history persistence checks.

Usage:
    python test_history.py
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from history import HISTORY_FILE_ENV, MAX_HISTORY, CommandHistory


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
    print("  Command History Tests")
    print(LINE * 62)

    with tempfile.TemporaryDirectory(prefix="bookmate-history-") as tmp:
        path = Path(tmp) / "nested" / "history.json"
        history = CommandHistory(str(path))

        check("Missing file loads as empty", history.load() == [])

        history.add("debit 500 cash")
        check("File created with parent directories", path.exists())
        check("First command stored", history.load() == ["debit 500 cash"])

        history.add("  income 200  ")
        check("Most recent first, trimmed", history.load() == ["income 200", "debit 500 cash"])

        history.add("debit 500 cash")
        check("Re-added command moves to front without duplicate", history.load() == ["debit 500 cash", "income 200"])

        returned = history.add("   ")
        check("Blank command ignored", returned == ["debit 500 cash", "income 200"])

        for index in range(10):
            history.add(f"command {index}")
        saved = history.load()
        check("History capped", len(saved) == MAX_HISTORY)
        check("Newest command kept", saved[0] == "command 9")

        raw = json.loads(path.read_text(encoding="utf-8"))
        check("Persisted JSON has commands and timestamp", raw["commands"] == saved and raw["updated_at"])

        reopened = CommandHistory(str(path))
        check("New instance reads the same file", reopened.load() == saved)

        leftovers = [item.name for item in path.parent.iterdir() if item.suffix == ".tmp"]
        check("No temp files left behind", leftovers == [])

        path.write_text("{not json", encoding="utf-8")
        check("Corrupt file loads as empty", history.load() == [])
        history.add("credit 100")
        check("Corrupt file overwritten on next add", history.load() == ["credit 100"])

        history.clear()
        check("Clear removes file", not path.exists() and history.load() == [])
        history.clear()
        check("Clear on missing file is a no-op", not path.exists())

        short = CommandHistory(str(Path(tmp) / "short.json"), limit=2)
        for command in ("a 1", "b 2", "c 3"):
            short.add(command)
        check("Custom limit honoured", short.load() == ["c 3", "b 2"])

        env_path = Path(tmp) / "env.json"
        previous = os.environ.get(HISTORY_FILE_ENV)
        os.environ[HISTORY_FILE_ENV] = str(env_path)
        try:
            from_env = CommandHistory()
            check("Path read from environment", from_env.path == env_path.resolve())
        finally:
            if previous is None:
                os.environ.pop(HISTORY_FILE_ENV, None)
            else:
                os.environ[HISTORY_FILE_ENV] = previous

    print(f"\n{LINE * 62}")
    print(f"  Results: {passed}/{passed + failed} passed")
    if failed == 0:
        print(f"  History: COMPLETE {PASS}")
    else:
        print(f"  History: {failed} FAILED")
    print(f"{LINE * 62}")
    return failed


def test_history_suite() -> None:
    assert main() == 0


if __name__ == "__main__":
    raise SystemExit(1 if main() else 0)
