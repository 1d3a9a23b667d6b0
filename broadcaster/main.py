from fastapi import FastAPI
from broadcaster.config import get_settings
from broadcaster.logging_config import setup_logging
from broadcaster.broadcast import broadcast_router

settings = get_settings()

setup_logging(settings.log_level, settings.log_json)

app = FastAPI(
    title="Broadcast Messages API",
    description="Create, update and delete broadcast messages with per-recipient permissions and push",
    version="1.0.0",
    debug=settings.debug
)

app.include_router(broadcast_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
