#!/usr/bin/env python3
"""
RecordVault -- JWT-authenticated, ownership-scoped record API.

Usage:
  python main.py
  python main.py --port 8000
  python main.py --host 127.0.0.1 --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY    JWT signing key, 32+ characters. JWT_SECRET is accepted too.
                Optional only when DEBUG=true (a random key is generated).
  DATABASE_URL  SQLAlchemy URL. Default: sqlite:///./recordvault.db
  CORS_ORIGIN   Allowed browser origin. Default: http://localhost:3000
  PORT          Listening port. Default: 5000
"""

import argparse

import uvicorn

from core.config import Settings


def main() -> None:
    settings = Settings()

    parser = argparse.ArgumentParser(
        description="Run the RecordVault API server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Listening port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    # Import string rather than an app object so --reload can re-import it.
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
