"""
soar_socket.api.__main__

Entrypoint for running the service via `python -m soar_socket.api`.
"""

from __future__ import annotations

import uvicorn

from soar_socket.api.app import create_app
from soar_socket.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
