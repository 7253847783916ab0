"""
asgi.py -- Process entry point for NoteVault.

This is the ONLY place that reads configuration from the environment
(get_settings()) and turns it into an application. Everything else receives
the Settings object through create_app().

A missing or short SECRET_KEY makes get_settings() raise here, so the server
refuses to start rather than failing per request.

Run with:  uvicorn asgi:app --reload
           python asgi.py          (binds HOST:PORT, default 127.0.0.1:3000)
"""

import uvicorn

from api.main import create_app
from core.config import get_settings

settings = get_settings()
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
