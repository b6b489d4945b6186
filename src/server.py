"""Production server entrypoint."""
from __future__ import annotations

import os

import uvicorn


def main() -> None:
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    log_level = os.environ.get("LOG_LEVEL", "info").lower()
    # a single worker: the engine, its feed and its in-flight build live in-process
    uvicorn.run("src.main:create_app", factory=True, host=host, port=port, workers=1, log_level=log_level)


if __name__ == "__main__":
    main()
