"""Console entry point: serve the session API with uvicorn."""

from __future__ import annotations

import uvicorn

from nametag.config import settings


def main() -> None:
    uvicorn.run("nametag.api.main:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
