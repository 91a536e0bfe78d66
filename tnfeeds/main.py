"""
Main Orchestration Script for the TennesseeFeeds aggregator.

Coordinates all components to:
1. Load configuration
2. Fetch every enabled source concurrently
3. Parse and normalize feed items into articles
4. Merge, deduplicate and sort (or fall back to sample data)
5. Write the feed snapshot for the site

Designed to run via CRON (single execution, then exit).
"""
import os
import sys
import logging
from pathlib import Path
from typing import Optional

from tnfeeds.aggregator import AggregationResult, Aggregator
from tnfeeds.config import ConfigError, ConfigLoader, configure_logging
from tnfeeds.output import FeedWriter

# Setup logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def run_cycle(config_path: Path, output_file: Optional[Path] = None) -> AggregationResult:
    """
    Run one aggregation cycle and write its snapshot.

    Args:
        config_path: Path to config.yaml
        output_file: Snapshot path (default: config output_file)

    Returns:
        AggregationResult for the cycle

    Raises:
        ConfigError: If the configuration is invalid
    """
    logger.info("=" * 60)
    logger.info("Starting TennesseeFeeds aggregation")
    logger.info("=" * 60)

    config = ConfigLoader(config_path).load()
    configure_logging(config.log_level)

    result = Aggregator(config).run()

    writer = FeedWriter(output_file or Path(config.output_file))
    writer.write(result)

    if result.fallback:
        logger.warning("All sources failed, snapshot contains sample articles")
    if result.failed:
        logger.warning(f"Failed sources: {', '.join(result.failed)}")

    logger.info("=" * 60)
    logger.info("Aggregation run completed")
    logger.info("=" * 60)
    return result


def main():
    """
    Main entry point for command-line execution.

    Usage:
        python -m tnfeeds.main
    """
    config_path = Path(os.getenv("CONFIG_PATH", "config.yaml"))
    output_env = os.getenv("OUTPUT_FILE")
    output_file = Path(output_env) if output_env else None

    if not config_path.exists():
        logger.error(f"Configuration file not found: {config_path}")
        logger.error("Please create config.yaml (see config.example.yaml)")
        sys.exit(1)

    try:
        run_cycle(config_path, output_file)
        sys.exit(0)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Aggregator failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
