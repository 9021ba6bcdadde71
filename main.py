"""
main.py - CLI for the quick-entry parser and dropdown matcher.

Three modes:
1. --command TEXT           parse one command
2. --match FIELD --text T   match free text onto one dropdown field
3. --batch CSV              parse every row of a CSV 'command' column
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time

import pandas as pd

from catalog import load_options
from logging_config import get_logger, setup_logging
from match import match_field
from models import FIELD_NAMES, MatchOptions, ParseResult
from normalize import format_amount
from parse import parse_manual_command

logger = get_logger("bookmate-cli")

COMMAND_COLUMN = "command"
OUTPUT_COLUMNS = [
    "command",
    "ok",
    "confidence",
    "day",
    "month",
    "year",
    "property",
    "typeOfOperation",
    "typeOfPayment",
    "detail",
    "debit",
    "credit",
]


def _configure_output_symbols() -> tuple[str, str, str]:
    """Configure stdout encoding and return safe line/pass/fail symbols."""
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    try:
        "═✓✗".encode(sys.stdout.encoding or "utf-8")
        return "═", "✓", "✗"
    except Exception:
        return "=", "OK", "X"


BOX_CHAR, PASS_CHAR, FAIL_CHAR = _configure_output_symbols()


def load_commands(csv_path: str) -> pd.DataFrame:
    """Load a CSV with one quick-entry command per row."""
    if csv_path is None:
        raise ValueError("csv_path cannot be None")

    csv_path = str(csv_path).strip()
    if not csv_path:
        raise ValueError("csv_path cannot be empty")

    if not os.path.exists(csv_path):
        raise FileNotFoundError(
            f"Commands CSV not found: {csv_path}\n"
            "Provide a valid CSV path with --batch"
        )

    try:
        df = pd.read_csv(csv_path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    except UnicodeDecodeError:
        logger.warning(
            "csv_encoding_warning | path=%s | reason='utf-8 decode failed' | fallback=latin-1",
            csv_path,
        )
        df = pd.read_csv(csv_path, encoding="latin-1", dtype=str, keep_default_na=False)
    except Exception as exc:
        raise ValueError(f"Failed to read CSV '{csv_path}': {exc}") from exc

    df.columns = [str(col).strip().lower() for col in df.columns]
    if COMMAND_COLUMN not in df.columns:
        raise ValueError(
            f"Commands CSV missing required column: '{COMMAND_COLUMN}'\n"
            f"Found: {list(df.columns)}"
        )

    df[COMMAND_COLUMN] = df[COMMAND_COLUMN].astype(str).str.strip()
    df = df[df[COMMAND_COLUMN] != ""].copy()
    if df.empty:
        raise ValueError(f"Commands CSV is empty: {csv_path}")

    logger.info("csv_loaded | path=%s | rows=%s", csv_path, len(df))
    return df


def _result_row(command: str, result: ParseResult) -> dict[str, object]:
    row: dict[str, object] = {
        "command": command,
        "ok": result.ok,
        "confidence": result.confidence,
    }
    data = result.data.model_dump(by_alias=True) if result.data else {}
    for column in OUTPUT_COLUMNS[3:]:
        row[column] = data.get(column, "")
    return row


def parse_commands(df: pd.DataFrame, options: MatchOptions) -> pd.DataFrame:
    """Parse every command in the frame and return one result row per command."""
    rows = [_result_row(command, parse_manual_command(command, options)) for command in df[COMMAND_COLUMN]]
    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)


def format_parse_result(command: str, result: ParseResult) -> str:
    """Human-readable rendering of one parse."""
    lines = [
        f"{BOX_CHAR * 60}",
        f"  Command: {command}",
        f"{BOX_CHAR * 60}",
        f"  Status:     {PASS_CHAR + ' ok' if result.ok else FAIL_CHAR + ' needs review'}",
        f"  Confidence: {result.confidence * 100:.0f}%",
    ]
    if result.data is not None:
        entry = result.data
        lines.extend(
            [
                f"  Date:       {entry.day} {entry.month} {entry.year}",
                f"  Property:   {entry.property or '-'}",
                f"  Operation:  {entry.type_of_operation or '-'}",
                f"  Payment:    {entry.type_of_payment or '-'}",
                f"  Detail:     {entry.detail}",
                f"  Debit:      {format_amount(entry.debit)}",
                f"  Credit:     {format_amount(entry.credit)}",
            ]
        )
    if result.reasons:
        lines.append("  Reasons:")
        lines.extend(f"    - {reason}" for reason in result.reasons)
    return "\n".join(lines)


def _print_summary_table(results: pd.DataFrame) -> None:
    """Print a formatted summary table for batch mode results."""
    print(f"\n{BOX_CHAR * 78}")
    print(f"  SUMMARY - {len(results)} command(s) parsed")
    print(f"{BOX_CHAR * 78}")
    print()
    print(f"  {'Command':<32} {'Operation':<28} {'Amount':>9} {'Conf':>5}")
    print(f"  {'─' * 32} {'─' * 28} {'─' * 9} {'─' * 5}")

    for row in results.itertuples(index=False):
        command = str(row.command)
        operation = str(row.typeOfOperation) or "-"
        short_command = command[:30] + ".." if len(command) > 32 else command
        short_operation = operation[:26] + ".." if len(operation) > 28 else operation
        amount = format_amount(float(row.debit) or float(row.credit))
        mark = PASS_CHAR if row.ok else FAIL_CHAR
        print(f"  {short_command:<32} {short_operation:<28} {amount:>9} {row.confidence * 100:>4.0f}% {mark}")

    print()
    print(f"{BOX_CHAR * 78}")


def run_batch(
    csv_path: str,
    options: MatchOptions,
    output_path: str | None = None,
    as_json: bool = False,
) -> pd.DataFrame:
    """Parse every command in a CSV; write results to `output_path` or print them."""
    start = time.time()
    results = parse_commands(load_commands(csv_path), options)

    if output_path:
        results.to_csv(output_path, index=False)
        print(f"Wrote {len(results)} row(s) to {output_path}")
    elif as_json:
        print(results.to_json(orient="records", indent=2, force_ascii=False))
    else:
        _print_summary_table(results)

    ok_count = int(results["ok"].sum())
    logger.info(
        "batch_complete | rows=%s | ok=%s | needs_review=%s | duration_s=%.2f",
        len(results),
        ok_count,
        len(results) - ok_count,
        time.time() - start,
    )
    return results


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="bookmate-entry",
        description=(
            "BookMate quick entry\n"
            "Parses free-text ledger commands and maps text onto the "
            "property, operation and payment dropdowns."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  %(prog)s --command "alesia - 2000 - debit - cash - landscaping"\n'
            '  %(prog)s --match typeOfPayment --text "bangkok bank shaun"\n'
            "  %(prog)s --batch commands.csv --output parsed.csv\n"
        ),
    )
    parser.add_argument("--command", "-c", type=str, help="Parse one quick-entry command")
    parser.add_argument(
        "--match",
        "-m",
        choices=list(FIELD_NAMES),
        help="Match --text onto one dropdown field",
    )
    parser.add_argument("--text", "-t", type=str, help="Free text for --match")
    parser.add_argument("--comment", type=str, help="Optional comment for --match")
    parser.add_argument("--batch", "-b", type=str, help="CSV file with a 'command' column")
    parser.add_argument("--output", "-o", type=str, help="Write batch results to this CSV")
    parser.add_argument("--options", type=str, help="Option catalog JSON (overrides BOOKMATE_OPTIONS_FILE)")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG-level) logging",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON instead of formatted text",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs as JSON lines (for production/log aggregation)",
    )

    args = parser.parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_format=args.log_json,
    )

    modes = [mode for mode in (args.command, args.match, args.batch) if mode]
    if not modes:
        parser.error("Provide one of --command TEXT, --match FIELD, or --batch CSV")
    if len(modes) > 1:
        parser.error("Use only one of --command, --match, --batch")
    if args.match and args.text is None:
        parser.error("--match requires --text")

    try:
        options = load_options(args.options)

        if args.batch:
            logger.info("cli_mode | mode=batch | csv=%s", args.batch)
            run_batch(args.batch, options, args.output, as_json=args.json)
            return

        if args.match:
            logger.info("cli_mode | mode=match | field=%s", args.match)
            result = match_field(args.match, args.text, args.comment, options)
            if args.json:
                print(json.dumps(result.model_dump(), indent=2))
            else:
                state = "matched" if result.matched else "not matched"
                print(f"{args.match}: {result.value or '-'} ({result.confidence * 100:.0f}%, {state})")
            return

        logger.info("cli_mode | mode=command")
        result = parse_manual_command(args.command, options)
        if args.json:
            print(json.dumps(result.model_dump(by_alias=True), indent=2, ensure_ascii=False))
        else:
            print(format_parse_result(args.command, result))
    except FileNotFoundError as exc:
        logger.error("cli_error | type=FileNotFoundError | error=%s", exc)
        print(f"\nError: {exc}")
        raise SystemExit(1) from exc
    except ValueError as exc:
        logger.error("cli_error | type=ValueError | error=%s", exc)
        print(f"\nError: {exc}")
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        print("\nInterrupted.")
        raise SystemExit(130)
    except Exception as exc:
        logger.error(
            "cli_error | type=%s | error=%s",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        print(f"\nUnexpected error: {exc}")
        print("Run with --verbose for full traceback.")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
