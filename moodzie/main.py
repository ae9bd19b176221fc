from __future__ import annotations

import os

import uvicorn

from moodzie.app.main import app

DEFAULT_PORT = 8000


def run() -> None:
    """Serve the API on ``$HOST:$PORT``.

    Requests are already logged as JSON by the app's middleware, so the
    uvicorn access log stays off.
    """

    host = os.getenv("HOST") or "0.0.0.0"
    port = int(os.getenv("PORT") or DEFAULT_PORT)
    uvicorn.run(app, host=host, port=port, access_log=False)


if __name__ == "__main__":
    run()
