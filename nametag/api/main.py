from fastapi import FastAPI

from nametag.api.routes.session import router as session_router
from nametag.config import settings
from nametag.log_setup import setup_logging

setup_logging(settings.log_level)

app = FastAPI(
    title="Nametag Session API",
    description="Live speaker identification and conversation memory",
    version="0.1.0",
)

app.include_router(session_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
