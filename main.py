"""
Job scheduler - server entry point.

Loads .env, configures logging and runs the FastAPI app under uvicorn.
The scheduler itself is started by the application lifespan
(see SCHEDULER_AUTOSTART).
"""

import argparse
import os

import uvicorn
from dotenv import load_dotenv

from src.infra.logging_config import setup_logging


# Load .env before reading defaults
load_dotenv()


def parse_args(argv=None):
    """Parse CLI arguments. Defaults come from HOST / PORT / LOG_LEVEL."""
    parser = argparse.ArgumentParser(
        description="HTTP job scheduler API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default host/port from the environment (0.0.0.0:3000)
  python main.py

  # Local only, verbose
  python main.py --host 127.0.0.1 --port 8000 --log-level DEBUG

  # Start the API without the poll loop
  SCHEDULER_AUTOSTART=false python main.py
        """
    )
    parser.add_argument(
        "--host",
        type=str,
        default=os.getenv("HOST", "0.0.0.0"),
        help="Bind address. Default: $HOST or 0.0.0.0"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "3000")),
        help="Bind port. Default: $PORT or 3000"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level. Default: $LOG_LEVEL or INFO"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        default=False,
        help="Auto-reload on code changes (development only)"
    )
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()

    logger = setup_logging(args.log_level)
    logger.info(f"Starting Job Scheduler API on {args.host}:{args.port}")

    uvicorn.run(
        "src.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
