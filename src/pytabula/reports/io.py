import csv
import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

CSV_COLUMNS = [
    ("Method", "method"),
    ("Endpoint", "endpoint"),
    ("Request", "request"),
    ("Iterations", "iterations"),
    ("Avg(ms)", "average"),
    ("Min(ms)", "min"),
    ("Max(ms)", "max"),
    ("Median(ms)", "median"),
    ("StdDev", "std_dev"),
    ("SuccessRate", "success_rate"),
]


def load_summary(summary_path: str, data_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load a Newman JSON run summary.

    Parameters
    ----------
    summary_path : str
        Path to the JSON file written by Newman's ``json`` reporter.
    data_path : str, optional
        Directory that ``summary_path`` is relative to.

    Returns
    -------
    Dict[str, Any]
        The parsed summary.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    RuntimeError
        If the file is not valid JSON or lacks ``run.executions``.
    """
    if data_path is not None and not os.path.isabs(summary_path):
        summary_path = os.path.join(data_path, summary_path)

    if not os.path.exists(summary_path):
        msg = f"Newman summary not found: {summary_path}"
        logger.error(msg)
        raise FileNotFoundError(msg)

    try:
        with open(summary_path, "r", encoding="utf-8") as f:
            summary = json.load(f)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"JSON parsing error in {summary_path}: {e}")

    if not isinstance(summary.get("run"), dict) or "executions" not in summary["run"]:
        raise RuntimeError(f"Newman summary has no run.executions: {summary_path}")

    logger.info(
        f"Loaded Newman summary {summary_path} with {len(summary['run']['executions'])} executions"
    )
    return summary


def report_timestamp(moment: Optional[datetime] = None) -> str:
    """Filesystem-safe timestamp, e.g. ``2025-01-31T12-00-00-000Z``."""
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"


def write_csv_report(stats: Dict[str, Dict[str, Any]], csv_path: str) -> str:
    """
    Write per-request statistics as CSV.

    Parameters
    ----------
    stats : Dict[str, Dict[str, Any]]
        Per-request statistics as returned by ``summarize_request``.
    csv_path : str
        Output path.

    Returns
    -------
    str
        The path written.
    """
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([header for header, _ in CSV_COLUMNS])
        for stat in stats.values():
            writer.writerow([stat[field] for _, field in CSV_COLUMNS])

    logger.info(f"CSV report: {csv_path}")
    return csv_path


def _markdown_row(cells: List[Any]) -> str:
    return "| " + " | ".join(str(cell) for cell in cells) + " |\n"


def write_markdown_report(
    stats: Dict[str, Dict[str, Any]],
    totals: Dict[str, Any],
    md_path: str,
    title: str = "API performance test results",
    base_url: Optional[str] = None,
    iterations: Optional[int] = None,
    technology: Optional[str] = None,
    tested_at: Optional[datetime] = None,
) -> str:
    """
    Write per-request statistics and totals as a Markdown report.

    Parameters
    ----------
    stats : Dict[str, Dict[str, Any]]
        Per-request statistics.
    totals : Dict[str, Any]
        Overall statistics as returned by ``summarize_totals``.
    md_path : str
        Output path.
    title : str, default="API performance test results"
        Report heading.
    base_url : str, optional
        Base URL shown in the header block.
    iterations : int, optional
        Iterations per request shown in the header block.
    technology : str, optional
        Technology label shown in the header block.
    tested_at : datetime, optional
        Test date; defaults to now.

    Returns
    -------
    str
        The path written.
    """
    tested_at = tested_at or datetime.now()

    lines = [f"# {title}\n\n"]
    lines.append(f"**Test date:** {tested_at:%Y-%m-%d %H:%M:%S}  \n")
    if technology:
        lines.append(f"**Technology:** {technology}  \n")
    if base_url:
        lines.append(f"**Base URL:** {base_url}  \n")
    if iterations is not None:
        lines.append(f"**Iterations per request:** {iterations}  \n")
    lines.append("\n## Response times per request (ms)\n\n")
    lines.append(
        _markdown_row(
            ["#", "Method", "Endpoint", "Request", "Avg", "Min", "Max", "Median", "Std dev", "Success"]
        )
    )
    lines.append("|---|--------|----------|---------|-----|-----|-----|--------|---------|---------|\n")
    for counter, stat in enumerate(stats.values(), start=1):
        lines.append(
            _markdown_row(
                [
                    counter,
                    stat["method"],
                    stat["endpoint"],
                    stat["request"],
                    stat["average"],
                    stat["min"],
                    stat["max"],
                    stat["median"],
                    stat["std_dev"],
                    stat["success_rate"],
                ]
            )
        )

    lines.append("\n## Summary\n\n")
    lines.append("| Metric | Value |\n")
    lines.append("|--------|-------|\n")
    lines.append(_markdown_row(["Total requests", totals["total_requests"]]))
    lines.append(_markdown_row(["Endpoints tested", totals["endpoints"]]))
    lines.append(_markdown_row(["Average response time", f"{totals['average']} ms"]))
    lines.append(_markdown_row(["Minimum time", f"{totals['min']} ms"]))
    lines.append(_markdown_row(["Maximum time", f"{totals['max']} ms"]))

    with open(md_path, "w", encoding="utf-8") as f:
        f.write("".join(lines))

    logger.info(f"Markdown report: {md_path}")
    return md_path


def write_json_report(
    stats: Dict[str, Dict[str, Any]],
    totals: Dict[str, Any],
    json_path: str,
    environment: Optional[str] = None,
) -> str:
    """Write the statistics as an indented JSON analysis document."""
    report = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": environment,
        "performance_stats": stats,
        "totals": totals,
    }
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)

    logger.info(f"JSON report: {json_path}")
    return json_path
