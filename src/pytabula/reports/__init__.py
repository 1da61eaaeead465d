"""
Performance-report components for pytabula.

This package turns Newman JSON run summaries into CSV and Markdown
response-time reports.
"""

from pytabula.reports.io import (
    load_summary,
    write_csv_report,
    write_json_report,
    write_markdown_report,
)
from pytabula.reports.performance import (
    analyze_summary,
    collect_timings,
    configure_logging,
    process_summary,
    summarize_request,
    summarize_totals,
)

__all__ = [
    "load_summary",
    "write_csv_report",
    "write_markdown_report",
    "write_json_report",
    "collect_timings",
    "summarize_request",
    "summarize_totals",
    "analyze_summary",
    "process_summary",
    "configure_logging",
]
