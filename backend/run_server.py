#!/usr/bin/env python3
"""
Launch script for the Flight Log Analysis backend.

Usage:
    python run_server.py [data_folder] [--port PORT] [--host HOST]

Examples:
    python run_server.py                    # Use default ./data/logs folder
    python run_server.py /path/to/logs      # Use custom folder
    python run_server.py --port 5000        # Run on port 5000
"""

import argparse
import os
import sys
from pathlib import Path

# Add flightlog to path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    parser = argparse.ArgumentParser(description="Flight Log Analysis Backend Server")
    parser.add_argument(
        "data_folder",
        nargs="?",
        default="./data/logs",
        help="Path to folder containing blackbox CSV logs (default: ./data/logs)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)"
    )
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for all interfaces)"
    )
    parser.add_argument(
        "--timezone", "-t",
        default=None,
        help="IANA timezone for takeoff time display (default: Asia/Taipei)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Run in debug mode (auto-reload, debug logging)"
    )

    args = parser.parse_args()

    data_folder = Path(args.data_folder)

    print("Flight Log Analysis Backend")
    print("=" * 40)
    print(f"Data folder: {data_folder.absolute()}")
    print(f"Server: http://{args.host}:{args.port}")
    print("=" * 40)

    if not data_folder.exists():
        print(f"\nWarning: Data folder does not exist: {data_folder}")
        print("You can set it later via POST /folder")

    # Configuration is read from the environment at import time
    if data_folder.exists():
        os.environ["FLIGHTLOG_DATA_FOLDER"] = str(data_folder)
    if args.timezone:
        os.environ["FLIGHTLOG_TIMEZONE"] = args.timezone
    if args.debug:
        os.environ["FLIGHTLOG_LOG_LEVEL"] = "DEBUG"

    print("\nAPI Endpoints:")
    print("  GET  /                     - Health check")
    print("  GET  /health               - Detailed health")
    print("  GET  /folder               - Current folder info")
    print("  POST /folder               - Set data folder")
    print("  POST /folder/rescan        - Rescan data folder")
    print("  GET  /logs                 - List all logs")
    print("  GET  /logs/{id}            - Flight info and channels")
    print("  GET  /logs/{id}/series     - Chart series")
    print("  GET  /logs/{id}/path       - GPS flight path")
    print("  GET  /logs/{id}/summary    - Flight summary")
    print("  GET  /logs/{id}/context    - Flight summary as JSON text")
    print("  POST /analyze              - Analyze posted rows")
    print("\nStarting server...")

    import uvicorn

    uvicorn.run(
        "flightlog.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="debug" if args.debug else "info",
    )


if __name__ == "__main__":
    main()
