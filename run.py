"""Start the RahaSeva API with uvicorn.

Host, port and log level come from the same environment variables as
the application settings (``HOST``, ``PORT``, ``LOG_LEVEL``).  Put them
in the environment or a process manager's config, then run::

    python run.py
"""

import uvicorn

from rahaseva_api.app.core.config import settings


def main() -> None:
    uvicorn.run(
        "rahaseva_api.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
