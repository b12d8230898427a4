#!/usr/bin/env python3
"""
workhub API startup script.

Starts the FastAPI server with auto-reload for local development.
Swagger UI: http://localhost:8000/docs
"""

import sys
from pathlib import Path

import uvicorn


def main():
    """Start the workhub API server."""
    missing = [name for name in ("JWT_SECRET", "DATABASE_URL") if name not in _env_keys()]
    if missing:
        print(f"WARNING: {', '.join(missing)} not found in environment or .env")
        print("   The server will refuse to start without them.")
        print("")

    try:
        uvicorn.run(
            "workhub.main:app",
            host="0.0.0.0",
            port=8000,
            reload=True,
            reload_dirs=["workhub"],
            log_level="info",
        )
    except KeyboardInterrupt:
        print("\nShutting down workhub API server...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)


def _env_keys():
    import os

    keys = set(os.environ)
    env_file = Path(".env")
    if env_file.exists():
        for line in env_file.read_text().splitlines():
            if "=" in line and not line.lstrip().startswith("#"):
                keys.add(line.split("=", 1)[0].strip())
    return keys


if __name__ == "__main__":
    main()
