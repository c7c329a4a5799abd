#!/usr/bin/env python3
"""
Run the marketing playground API with uvicorn.

Host and port default to HOST / PORT from the environment (or .env), so the
same command works locally and inside a container.
"""

import argparse
import os

import uvicorn
from dotenv import load_dotenv

from utils.logger import get_logger

load_dotenv()

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Marketing Playground API Server")
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"), help="Host to bind to")
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")), help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload (development only)")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logger.info(
        "Starting API server",
        extra={"extra_fields": {"host": args.host, "port": args.port, "reload": args.reload}},
    )
    uvicorn.run(
        "server.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
