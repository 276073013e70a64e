"""Run the media search API with ``python -m mediasearch``."""

from __future__ import annotations

import uvicorn

from app.config import settings


def main() -> None:
    """Serve ``app.main:app``; reload is enabled in development."""

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
