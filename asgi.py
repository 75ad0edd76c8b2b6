"""
asgi.py -- Application assembly for RecordVault.

This is the process-start point for ASGI servers: it reads the environment
once into a Settings object and builds the app from it.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import Settings

settings = Settings()
app = create_app(settings)
