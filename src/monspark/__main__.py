"""Run the API server: ``python -m monspark``."""

import uvicorn

from monspark.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "monspark.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
