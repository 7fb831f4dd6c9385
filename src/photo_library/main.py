"""Command-line entrypoint that serves the API with uvicorn."""

import uvicorn

from photo_library.app_logging import configure_logging
from photo_library.config import Settings


def main() -> None:
    """Run the HTTP server."""
    configure_logging()
    settings = Settings()
    uvicorn.run(
        "photo_library.api.asgi:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    main()
