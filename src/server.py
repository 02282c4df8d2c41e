"""HTTP server runner for the marketplace order service.

Initializes the Protean domains, configures logging, validates the
environment and serves the FastAPI application with uvicorn.

Usage:
    python src/server.py                      # 0.0.0.0:8000
    python src/server.py --port 9000
"""

import argparse

import uvicorn

from app import create_app, init_domains
from shared.logging import configure_logging
from shared.settings import get_settings, validate_environment


def main():
    parser = argparse.ArgumentParser(description="Marketplace order service")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: 8000)")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)
    validate_environment(settings)
    init_domains()

    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
