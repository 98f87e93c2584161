#!/usr/bin/env python3
"""
Ledger Service Entry Point

Starts the FastAPI server with the host, port and storage backend taken from
LEDGER_* environment variables.
"""

import sys

import uvicorn

from ledger_service.config import get_config


def run_server() -> None:
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "ledger_service.api:app",
        host=config.api_host,
        port=config.api_port,
        reload=config.api_reload,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    try:
        run_server()
    except KeyboardInterrupt:
        print("\nShutting down ledger service...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
