from pytabula.reports import configure_logging, process_summary

# --- User configuration dictionary ---
CONFIG = {
    "LOG_LEVEL": "INFO",  # logging level: DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL
    "DATA_PATH": "../test-results/",
    "RESULTS_DIR": "../test-results/reports/",
    "GROUP_BY": "endpoint",  # "endpoint" (METHOD path) or "name" (collection item)
    "MEDIAN": "upper",  # "upper" (sorted[n // 2]) or "mean" (average of middle pair)
    "WRITE_JSON": False,
    # ---
    "RUNS": [
        {
            "summary": "springboot-raw.json",
            "report_prefix": "springboot-performance",
            "title": "Spring Boot API performance test results",
            "technology": "Spring Boot Framework",
            "base_url": "http://localhost:8080/api/v1",
            "iterations": 10,
        },
        {
            "summary": "report.json",
            "report_prefix": "manual-performance",
            "title": "Manual API performance report",
            "technology": "Tomcat + Java Servlets",
            "base_url": "http://localhost:8080/lab5",
            "iterations": 10,
            "GROUP_BY": "name",
            "MEDIAN": "mean",
        },
    ],
}


def main() -> None:
    """
    Process every configured Newman run summary.
    """
    configure_logging(CONFIG.get("LOG_LEVEL", "INFO"))

    for run in CONFIG["RUNS"]:
        # Merge global config with run-specific overrides
        merged_config = CONFIG.copy()
        merged_config.update(run)

        process_summary(
            summary_path=merged_config["summary"],
            results_dir=merged_config["RESULTS_DIR"],
            data_path=merged_config["DATA_PATH"],
            report_prefix=merged_config.get("report_prefix", "performance"),
            title=merged_config.get("title", "API performance test results"),
            base_url=merged_config.get("base_url"),
            iterations=merged_config.get("iterations"),
            technology=merged_config.get("technology"),
            group_by=merged_config.get("GROUP_BY", "endpoint"),
            median=merged_config.get("MEDIAN", "upper"),
            write_json=merged_config.get("WRITE_JSON", False),
        )


if __name__ == "__main__":
    main()
