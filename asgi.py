"""
ASGI entry point.

Run with:
    TURNSTILE_SECRET_KEY=... uvicorn asgi:app --reload
"""

from app import create_app

app = create_app()
