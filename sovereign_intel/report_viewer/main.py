from __future__ import annotations

import argparse
import logging
import re
from dataclasses import replace
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from sovereign_intel.report_viewer.assembler import ReportViewer
from sovereign_intel.report_viewer.clients.report_source import (
    DirectoryReportSource,
    HttpReportSource,
)
from sovereign_intel.report_viewer.config import OUTPUT_FORMATS, ViewerConfig
from sovereign_intel.report_viewer.reporting import (
    build_markdown_report,
    write_docx,
    write_markdown,
)


UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sovereign Intel report viewer")
    parser.add_argument("--id", dest="report_id", help="Identifier of the report to render.")
    parser.add_argument(
        "--base-url",
        dest="base_url",
        help="Fetch reports over HTTP from <base-url>/<id>/data.json (overrides REPORT_BASE_URL).",
    )
    parser.add_argument(
        "--reports-dir",
        dest="reports_dir",
        help="Read reports from <reports-dir>/<id>/data.json (overrides REPORTS_DIR).",
    )
    parser.add_argument(
        "--output-dir",
        dest="output_dir",
        help="Directory for rendered files (overrides OUTPUT_DIR).",
    )
    parser.add_argument(
        "--format",
        dest="formats",
        action="append",
        choices=OUTPUT_FORMATS,
        default=[],
        help="Output format to write (can be repeated; default from REPORT_OUTPUT_FORMATS).",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the Markdown rendering instead of writing files.",
    )
    return parser.parse_args(argv)


def _apply_cli_overrides(config: ViewerConfig, args: argparse.Namespace) -> ViewerConfig:
    updated = config
    if args.base_url is not None:
        updated = replace(updated, report_base_url=args.base_url.strip().rstrip("/"))
    if args.reports_dir:
        # an explicit directory wins over an HTTP base URL from the environment
        updated = replace(updated, reports_dir=args.reports_dir, report_base_url="")
    if args.output_dir:
        updated = replace(updated, output_dir=args.output_dir)
    if args.formats:
        updated = replace(updated, output_formats=tuple(dict.fromkeys(args.formats)))
    return updated


def build_source(config: ViewerConfig) -> HttpReportSource | DirectoryReportSource:
    if config.http_source_enabled:
        return HttpReportSource(
            config.report_base_url,
            timeout_sec=config.http_timeout_sec,
            retry_attempts=config.http_retry_attempts,
            retry_backoff_sec=config.http_retry_backoff_sec,
        )
    return DirectoryReportSource(config.reports_dir)


def _output_stem(report_id: str) -> str:
    safe_id = UNSAFE_FILENAME_RE.sub("_", report_id).strip("._") or "report"
    return f"{safe_id}_intelligence_report"


def main(argv: list[str] | None = None) -> None:
    try:
        load_dotenv(find_dotenv(usecwd=True), override=False)
    except Exception:
        pass

    args = _parse_args(argv)
    config = _apply_cli_overrides(ViewerConfig.from_env(), args)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    viewer = ReportViewer(build_source(config))
    outcome = viewer.render(args.report_id)
    if outcome is None:
        raise SystemExit("Render was superseded by a newer request.")
    if not outcome.ok or outcome.report is None:
        message = outcome.error.message if outcome.error else "Failed to load the report."
        raise SystemExit(message)

    report = outcome.report
    markdown = build_markdown_report(report)
    if args.stdout:
        print(markdown, end="")
        return

    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    stem = _output_stem(outcome.report_id)
    for output_format in config.output_formats:
        if output_format == "markdown":
            path = output_dir / f"{stem}.md"
            write_markdown(path, markdown)
        else:
            path = output_dir / f"{stem}.docx"
            write_docx(path, report.title, markdown)
        print(f"Report rendered: {path} | title={report.title}")


if __name__ == "__main__":
    main()
