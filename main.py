import uvicorn
import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from core.config import PORT
from core.logger import setup_logger

import run_janitor

logger = setup_logger("GATEWAY")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 HUB ENGINE STARTING")
    try:
        await run_janitor.start_service()
    except Exception as e:
        logger.error(f"Janitor service failed to start: {e}")
    yield
    logger.info("🛑 HUB ENGINE SHUTDOWN")
    try:
        await asyncio.wait_for(run_janitor.stop_service(), timeout=10.0)
    except asyncio.TimeoutError:
        logger.error("⚠️ Force closing: janitor refused to shut down in time.")


app = FastAPI(lifespan=lifespan)
app.include_router(run_janitor.router)


@app.get("/health")
async def health():
    return JSONResponse({"status": "ok", "system": "Hub Engine"})


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)
