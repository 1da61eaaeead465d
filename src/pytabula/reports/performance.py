import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from loguru import logger

from pytabula.reports.io import (
    load_summary,
    report_timestamp,
    write_csv_report,
    write_json_report,
    write_markdown_report,
)

GROUP_BY_OPTIONS = ("endpoint", "name")
MEDIAN_OPTIONS = ("upper", "mean")


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure loguru logging with specified level.

    Parameters
    ----------
    log_level : str, default="INFO"
        Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        colorize=True,
    )


def _round_ms(value: float) -> int:
    # Half-up rounding, not Python's round-half-to-even
    return int(np.floor(value + 0.5))


def collect_timings(
    summary: Dict[str, Any], group_by: str = "endpoint"
) -> Dict[str, Dict[str, Any]]:
    """
    Group response times and status codes from a Newman summary.

    Parameters
    ----------
    summary : Dict[str, Any]
        Parsed Newman summary.
    group_by : str, default="endpoint"
        ``"endpoint"`` groups by ``"METHOD path"``; ``"name"`` groups by the
        collection item name.

    Returns
    -------
    Dict[str, Dict[str, Any]]
        Per-group ``name``, ``method``, ``url``, ``times`` and ``status_codes``,
        in first-seen order.
    """
    if group_by not in GROUP_BY_OPTIONS:
        raise ValueError(
            f"Unknown group_by: {group_by}. Choose from {GROUP_BY_OPTIONS}"
        )

    groups: Dict[str, Dict[str, Any]] = {}
    skipped = 0
    for execution in summary["run"]["executions"]:
        response = execution.get("response")
        if not response or "responseTime" not in response:
            skipped += 1
            continue

        name = execution.get("item", {}).get("name", "")
        request = execution.get("request", {})
        method = request.get("method", "GET")
        path = request.get("url", {}).get("path", [])
        url = "/".join(path) if isinstance(path, list) else str(path)

        key = f"{method} {url}" if group_by == "endpoint" else name
        group = groups.setdefault(
            key,
            {
                "name": name,
                "method": method,
                "url": url,
                "times": [],
                "status_codes": [],
            },
        )
        group["times"].append(float(response["responseTime"]))
        group["status_codes"].append(int(response.get("code", 0)))

    if skipped:
        logger.warning(f"Skipped {skipped} executions without a response")
    logger.debug(f"Collected timings for {len(groups)} groups")
    return groups


def summarize_request(group: Dict[str, Any], median: str = "upper") -> Dict[str, Any]:
    """
    Compute response-time statistics for one request group.

    Parameters
    ----------
    group : Dict[str, Any]
        One entry of ``collect_timings``.
    median : str, default="upper"
        ``"upper"`` takes ``sorted(times)[n // 2]``; ``"mean"`` averages the
        two middle values for even counts.

    Returns
    -------
    Dict[str, Any]
        ``request``, ``method``, ``endpoint``, ``iterations``, ``min``, ``max``,
        ``average``, ``median``, ``std_dev`` (population, integers in ms) and
        ``success_rate`` (share of 2xx responses, e.g. ``"90.0%"``).
    """
    if median not in MEDIAN_OPTIONS:
        raise ValueError(f"Unknown median: {median}. Choose from {MEDIAN_OPTIONS}")

    times = np.asarray(group["times"], dtype=np.float64)
    if times.size == 0:
        raise ValueError(f"No timings recorded for request '{group['name']}'")

    sorted_times = np.sort(times)
    if median == "upper":
        median_value = sorted_times[len(sorted_times) // 2]
    else:
        median_value = np.median(sorted_times)

    codes = np.asarray(group["status_codes"])
    success_count = int(np.sum((codes >= 200) & (codes < 300)))
    success_rate = f"{success_count / len(codes) * 100:.1f}%"

    return {
        "request": group["name"],
        "method": group["method"],
        "endpoint": "/" + group["url"],
        "iterations": int(times.size),
        "min": _round_ms(np.min(times)),
        "max": _round_ms(np.max(times)),
        "average": _round_ms(np.mean(times)),
        "median": _round_ms(median_value),
        "std_dev": _round_ms(np.std(times)),
        "success_rate": success_rate,
    }


def summarize_totals(groups: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Overall request count, average, min and max response time across groups."""
    all_times = np.concatenate(
        [np.asarray(group["times"], dtype=np.float64) for group in groups.values()]
    ) if groups else np.array([], dtype=np.float64)

    if all_times.size == 0:
        return {"total_requests": 0, "endpoints": 0, "average": 0, "min": 0, "max": 0}

    return {
        "total_requests": int(all_times.size),
        "endpoints": len(groups),
        "average": _round_ms(np.mean(all_times)),
        "min": _round_ms(np.min(all_times)),
        "max": _round_ms(np.max(all_times)),
    }


def analyze_summary(
    summary: Dict[str, Any], group_by: str = "endpoint", median: str = "upper"
) -> Tuple[Dict[str, Dict[str, Any]], Dict[str, Any]]:
    """
    Compute per-request and overall statistics for a Newman summary.

    Returns
    -------
    Tuple[Dict[str, Dict[str, Any]], Dict[str, Any]]
        Per-request statistics keyed by group, and overall totals.
    """
    groups = collect_timings(summary, group_by=group_by)
    stats = {key: summarize_request(group, median=median) for key, group in groups.items()}
    totals = summarize_totals(groups)
    return stats, totals


def format_console_table(stats: Dict[str, Dict[str, Any]]) -> List[str]:
    """Markdown-style table lines for logging."""
    lines = [
        "| Method | Endpoint | Avg (ms) | Min | Max | Iterations | Success |",
        "|--------|----------|----------|-----|-----|------------|---------|",
    ]
    for stat in stats.values():
        lines.append(
            f"| {stat['method']} | {stat['endpoint']} | {stat['average']} | {stat['min']} "
            f"| {stat['max']} | {stat['iterations']} | {stat['success_rate']} |"
        )
    return lines


def process_summary(
    summary_path: str,
    results_dir: str,
    data_path: Optional[str] = None,
    report_prefix: str = "performance",
    title: str = "API performance test results",
    base_url: Optional[str] = None,
    iterations: Optional[int] = None,
    technology: Optional[str] = None,
    group_by: str = "endpoint",
    median: str = "upper",
    write_json: bool = False,
    timestamp: Optional[str] = None,
) -> Dict[str, str]:
    """
    Load a Newman summary, analyse it and write the reports.

    Parameters
    ----------
    summary_path : str
        Newman JSON summary file.
    results_dir : str
        Directory for the reports; created if missing.
    data_path : str, optional
        Directory that ``summary_path`` is relative to.
    report_prefix : str, default="performance"
        Report filename prefix; files are ``<prefix>-<timestamp>.csv``/``.md``.
    title : str, default="API performance test results"
        Markdown report heading.
    base_url : str, optional
        Base URL shown in the Markdown header.
    iterations : int, optional
        Iterations per request shown in the Markdown header.
    technology : str, optional
        Technology label shown in the Markdown header.
    group_by : str, default="endpoint"
        See ``collect_timings``.
    median : str, default="upper"
        See ``summarize_request``.
    write_json : bool, default=False
        Also write a ``<prefix>-<timestamp>.json`` analysis document.
    timestamp : str, optional
        Filename timestamp; defaults to the current UTC time.

    Returns
    -------
    Dict[str, str]
        Paths of the written reports keyed by ``"csv"``, ``"markdown"`` and,
        when requested, ``"json"``.
    """
    summary = load_summary(summary_path, data_path=data_path)
    stats, totals = analyze_summary(summary, group_by=group_by, median=median)

    os.makedirs(results_dir, exist_ok=True)
    timestamp = timestamp or report_timestamp()
    base = os.path.join(results_dir, f"{report_prefix}-{timestamp}")

    paths = {
        "csv": write_csv_report(stats, base + ".csv"),
        "markdown": write_markdown_report(
            stats,
            totals,
            base + ".md",
            title=title,
            base_url=base_url,
            iterations=iterations,
            technology=technology,
        ),
    }
    if write_json:
        paths["json"] = write_json_report(stats, totals, base + ".json", environment=technology)

    logger.info("Performance analysis:")
    for line in format_console_table(stats):
        logger.info(line)
    logger.info(
        f"--Total requests: {totals['total_requests']}, endpoints: {totals['endpoints']}, "
        f"avg {totals['average']} ms, min {totals['min']} ms, max {totals['max']} ms"
    )
    logger.success(f"Reports saved to {results_dir}")
    return paths
