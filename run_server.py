#!/usr/bin/env python
"""
Production Server Entry Point

Starts the marketplace API.
Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py

    Or with Gunicorn:
    gunicorn marketplace.main:app -c gunicorn.conf.py
"""

import argparse
import os
import subprocess

import uvicorn

APP = "marketplace.main:app"


def run_dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        APP,
        host="0.0.0.0",
        port=int(os.getenv("PORT", 4000)),
        reload=True,
        reload_dirs=["marketplace"],
        log_level="debug",
        access_log=True,
    )


def run_prod_server():
    """Run production server with Uvicorn directly."""
    uvicorn.run(
        APP,
        host="0.0.0.0",
        port=int(os.getenv("PORT", 4000)),
        workers=int(os.getenv("API_WORKERS", 4)),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        access_log=True,
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
        date_header=True,
    )


def run_gunicorn():
    """Run with Gunicorn (recommended for production)."""
    subprocess.run(["gunicorn", APP, "-c", "gunicorn.conf.py"], check=True)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Marketplace API Server")
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
        default=4000,
        help="Port to run on (default: 4000)"
    )

    args = parser.parse_args()
    os.environ["PORT"] = str(args.port)

    if args.dev:
        print("Starting development server...")
        run_dev_server()
    elif args.gunicorn:
        print("Starting production server with Gunicorn...")
        run_gunicorn()
    else:
        print("Starting production server with Uvicorn...")
        run_prod_server()
