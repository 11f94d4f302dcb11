"""
asgi.py -- Application assembly.

This is the ONLY file that imports from both api/ and web/. It joins the API
and the SPA fallback into a single ASGI app without coupling them to each
other. api/main.py knows nothing about web/; web/spa.py knows nothing about
api/.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app
from web.spa import router as spa_router

# Mount the SPA fallback last: its catch-all path must not shadow API routes.
app.include_router(spa_router, tags=["Web UI"])
