"""
asgi.py -- ASGI entry point for the Tripmate auth service.

The front end is served separately (Vite dev server or static hosting) and
talks to this app over HTTP, so the assembly is just the API app.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
