import logging

from fastapi import FastAPI

from agencyhub.core.config import get_settings
from agencyhub.api.v1.router import api_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="AgencyHub Backend",
)


@app.get("/health", tags=["health"])
async def root_health() -> dict:
    """
    Global health check endpoint.
    """
    return {"status": "ok"}


# Mount versioned API router
app.include_router(api_router, prefix=settings.api_v1_prefix)
