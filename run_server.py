#!/usr/bin/env python
"""
Server Entry Point

Starts the analytics API with Uvicorn.
Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py
"""

import argparse
import os

APP = "marketplace_analytics.serving.api.main:app"


def run_dev_server(port: int):
    """Run development server with auto-reload."""
    import uvicorn

    uvicorn.run(
        APP,
        host="127.0.0.1",
        port=port,
        reload=True,
        reload_dirs=["marketplace_analytics"],
        log_level="debug",
        access_log=True,
    )


def run_prod_server(port: int):
    """Run production server with Uvicorn directly."""
    import uvicorn

    workers = int(os.getenv("WORKERS", 4))

    uvicorn.run(
        APP,
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=port,
        workers=workers,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        access_log=True,
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
        date_header=True,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Marketplace Analytics API Server")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Run in development mode with auto-reload"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("API_PORT", 8000)),
        help="Port to run on (default: 8000)"
    )

    args = parser.parse_args()

    if args.dev:
        print("🚀 Starting development server...")
        run_dev_server(args.port)
    else:
        print("🚀 Starting production server with Uvicorn...")
        run_prod_server(args.port)
