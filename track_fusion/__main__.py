"""
Command line entry point: ``python -m track_fusion --config config.json``
"""

import argparse
import logging
import signal
import sys
import time

from .config import ConfigManager, ConfigurationError
from .logging_setup import setup_logging
from .service import FusionService

logger = logging.getLogger("track_fusion")


def main(argv=None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Fuse AIS and SBS feeds into one track table")
    parser.add_argument("-c", "--config", default="config.json", help="Path to JSON config file")
    parser.add_argument("--status-interval", type=int, default=60,
                        help="Seconds between status log lines")
    args = parser.parse_args(argv)

    try:
        config = ConfigManager(args.config).load_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging)
    service = FusionService(config)

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        service.running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    service.start()
    try:
        last_status = time.time()
        while service.running:
            time.sleep(1)
            if time.time() - last_status >= args.status_interval:
                logger.info(f"Status: {service.track_table.get_statistics()}")
                last_status = time.time()
    finally:
        service.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
