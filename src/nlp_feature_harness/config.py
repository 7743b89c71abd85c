"""Process-level settings for the harness.

Experiment files carry everything that defines an experiment; these settings
only cover how the process runs it and are read from the environment with
fallbacks.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass
class HarnessSettings:
    """Runtime settings for experiment runs."""

    log_level: str = "INFO"
    max_threads: int = 1
    output_dir: Path = Path("output")
    random_seed: Optional[int] = None  # overrides the default seed of DatumTools when set
    log_file: Optional[Path] = None


def load_settings() -> HarnessSettings:
    """Load settings with proper fallbacks.

    Priority:
    1. Environment variables (``NLP_HARNESS_*``)
    2. Default values

    Returns:
        HarnessSettings: Loaded settings
    """
    try:
        log_level = os.getenv("NLP_HARNESS_LOG_LEVEL", "INFO").upper()
        max_threads = int(os.getenv("NLP_HARNESS_MAX_THREADS", "1"))
        output_dir = Path(os.getenv("NLP_HARNESS_OUTPUT_DIR", "output"))
        seed = os.getenv("NLP_HARNESS_RANDOM_SEED")
        random_seed = int(seed) if seed else None
        log_file = os.getenv("NLP_HARNESS_LOG_FILE")

        settings = HarnessSettings(
            log_level=log_level,
            max_threads=max_threads,
            output_dir=output_dir,
            random_seed=random_seed,
            log_file=Path(log_file) if log_file else None,
        )

        if settings.log_level not in LOG_LEVELS:
            logger.warning(f"Unknown log level {settings.log_level!r}; falling back to INFO")
            settings.log_level = "INFO"
        if settings.max_threads < 1:
            logger.warning(f"NLP_HARNESS_MAX_THREADS={settings.max_threads} is below 1; using 1")
            settings.max_threads = 1

        return settings

    except Exception as e:
        logger.error(f"Error loading settings: {e}")
        raise
