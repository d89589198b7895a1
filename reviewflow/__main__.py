"""Run the review workflow API server."""

import uvicorn

from reviewflow.core.config import get_settings


def main():
    """Main entry point: ``python -m reviewflow`` or the ``reviewflow`` script."""
    settings = get_settings()
    uvicorn.run(
        "reviewflow.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
