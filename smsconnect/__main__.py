"""Run the API server: ``python -m smsconnect``."""

import uvicorn

from smsconnect.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "smsconnect.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
