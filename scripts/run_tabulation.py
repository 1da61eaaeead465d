from warnings import warn

import matplotlib as mpl
import numpy as np
from loguru import logger

from pytabula import (
    ChunkedPointProcessor,
    PointPreviewPlot,
    configure_logging,
    create_default_mapper,
    tabulate,
)

# --- User configuration dictionary ---
CONFIG = {
    "LOG_LEVEL": "INFO",
    "MAX_POINTS": 10000,  # upper bound on stored points
    "CHUNK_SIZE": 1000,  # points per processing chunk
    "MAX_PLOT_POINTS": 1000,  # decimate above this for the preview
    "COMPRESS_TO": None,  # target point count for compression (None to skip)
    "OUTPUT_PATH": "./",
    # ---
    "FUNCTIONS": [
        {"key": "sin", "x_from": 0.0, "x_to": 2 * np.pi, "count": 8000},
        {"key": "sqr", "x_from": -5.0, "x_to": 5.0, "count": 50},
        {"key": "exp", "x_from": 0.0, "x_to": 3.0, "count": 2500, "COMPRESS_TO": 250},
    ],
}


def main() -> None:
    """
    Tabulate each configured function, tidy the points and save a preview.
    """
    configure_logging(CONFIG.get("LOG_LEVEL", "INFO"))
    mapper = create_default_mapper()

    for entry in CONFIG["FUNCTIONS"]:
        merged_config = CONFIG.copy()
        merged_config.update(entry)

        function = mapper.get_by_key(merged_config["key"])
        if function is None:
            logger.warning(f"Unknown function key '{merged_config['key']}', skipping")
            continue

        points = tabulate(
            function,
            merged_config["x_from"],
            merged_config["x_to"],
            merged_config["count"],
        )
        processor = ChunkedPointProcessor(
            points,
            max_points=merged_config["MAX_POINTS"],
            chunk_size=merged_config["CHUNK_SIZE"],
            progress_callback=lambda p: logger.debug(f"--progress {p:.0f}%"),
        )

        for result in (
            processor.remove_duplicates(across_chunks=True),
            processor.sort_points(),
        ):
            if not result.ok:
                logger.error(result.error)

        if merged_config.get("COMPRESS_TO"):
            result = processor.compress_data(merged_config["COMPRESS_TO"])
            if not result.ok:
                logger.error(result.error)

        stats = processor.get_statistics()
        logger.info(f"{merged_config['key']}: {stats}")

        preview = PointPreviewPlot(
            processor.points,
            title=mapper.get_info(mapper.get_name(function)).label,
            max_points=merged_config["MAX_PLOT_POINTS"],
        )
        preview.save(f"{merged_config['OUTPUT_PATH']}{merged_config['key']}_preview.png")
        preview.close()


if __name__ == "__main__":
    for optn, val in {
        "backend": "Agg",
        "figure.constrained_layout.use": True,
        "figure.dpi": 90,
        "font.size": 11,
        "lines.linewidth": 1.8,
        "axes.formatter.useoffset": False,
    }.items():
        try:
            mpl.rcParams[optn] = val
        except KeyError:
            warn(f"mpl rcparams key '{optn}' not recognised as a valid rc parameter.")
    main()
