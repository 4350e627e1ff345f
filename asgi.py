"""
asgi.py -- Application entry point for ContactVault.

The ONLY module servers should import. api/main.py owns the app; this file
exists so deployment commands do not depend on the package layout.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app

__all__ = ["app"]
