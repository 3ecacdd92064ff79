#!/usr/bin/env python
"""
Server Entry Point

Starts the reporting API.
Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py

    Or with Gunicorn:
    gunicorn coffee_analytics.main:app -c gunicorn.conf.py
"""

import argparse
import os
import subprocess


def run_dev_server(port: int):
    """Run development server with auto-reload."""
    import uvicorn

    uvicorn.run(
        "coffee_analytics.main:app",
        host="127.0.0.1",
        port=port,
        reload=True,
        reload_dirs=["coffee_analytics"],
        log_level="debug",
        access_log=True,
    )


def run_prod_server(port: int):
    """Run production server with Uvicorn directly."""
    import uvicorn

    uvicorn.run(
        "coffee_analytics.main:app",
        host="0.0.0.0",
        port=port,
        workers=int(os.getenv("WORKERS", 2)),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        access_log=True,
        proxy_headers=True,
        server_header=False,
    )


def run_gunicorn():
    """Run with Gunicorn."""
    subprocess.run(["gunicorn", "coffee_analytics.main:app", "-c", "gunicorn.conf.py"], check=True)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Coffee Shop Analytics API Server")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Run in development mode with auto-reload"
    )
    parser.add_argument(
        "--gunicorn",
        action="store_true",
        help="Run with Gunicorn (production)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", 8000)),
        help="Port to run on (default: 8000)"
    )

    args = parser.parse_args()

    if args.dev:
        print("🚀 Starting development server...")
        run_dev_server(args.port)
    elif args.gunicorn:
        print("🚀 Starting production server with Gunicorn...")
        os.environ["BIND"] = f"0.0.0.0:{args.port}"
        run_gunicorn()
    else:
        print("🚀 Starting production server with Uvicorn...")
        run_prod_server(args.port)
