import asyncio
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from core.config import JANITOR_ENABLED, JANITOR_INTERVAL
from core.logger import setup_logger
from core.task_manager import fire_and_forget, supervised_task
from hub_engine.alerts import alert_dispatcher
from hub_engine.cycle import get_cycle_info
from hub_engine.janitor import Janitor, janitor_loop
from hub_engine.notifications import NotificationSink
from hub_engine.repository import RecordStore
from utils.time_util import now_millis

logger = setup_logger("SVC_JANITOR")
router = APIRouter()
store = RecordStore()
janitor = Janitor(store, NotificationSink(store))
tasks = []


async def start_service():
    await store.init_schema()
    if not JANITOR_ENABLED:
        logger.info("Janitor disabled by configuration.")
        return

    tasks.append(fire_and_forget(supervised_task("ALERTS", alert_dispatcher)))
    tasks.append(fire_and_forget(supervised_task("JANITOR", lambda: janitor_loop(janitor, JANITOR_INTERVAL))))
    logger.info(f"✅ Janitor online, polling every {JANITOR_INTERVAL}s.")


async def stop_service():
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    tasks.clear()
    await store.dispose()


@router.get("/hubs/{party_id}/cycle")
async def party_cycle(party_id: str):
    party = await store.find_party(party_id)
    if party is None:
        return JSONResponse({"error": "Unknown party."}, status_code=404)
    info = get_cycle_info(party, now_millis())
    return JSONResponse({"party_id": party.id, "timezone": party.timezone, **info.to_dict()})
