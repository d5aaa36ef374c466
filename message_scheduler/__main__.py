"""
Run the message scheduler API server.

Usage:
    python -m message_scheduler [--host HOST] [--port PORT] [--log-level LEVEL]
"""

import argparse

import uvicorn
from dotenv import load_dotenv

from message_scheduler.infra.config import Settings
from message_scheduler.infra.logging_config import setup_logging


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="WhatsApp message scheduler API server")
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    args = parser.parse_args()

    logger = setup_logging(args.log_level, log_dir=settings.log_dir)
    logger.info(f"Starting server on {args.host}:{args.port}")

    uvicorn.run(
        "message_scheduler.api.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
