import asyncio
from core.logger import setup_logger

logger = setup_logger("TASK_MANAGER")
active_services = set()
background_tasks = set()


def fire_and_forget(coro) -> asyncio.Task:
    """Schedules a coroutine and keeps a strong reference until it finishes."""
    task = asyncio.create_task(coro)
    background_tasks.add(task)
    task.add_done_callback(background_tasks.discard)
    return task


async def supervised_task(name: str, coro_func, initial_delay: int = 5, max_delay: int = 60):
    """Runs a long-lived loop and restarts it with backoff when it crashes."""
    if name in active_services: return
    active_services.add(name)

    retry_delay = initial_delay
    try:
        while True:
            try:
                logger.info(f"🔄 [DEPLOYING] {name}...")
                await coro_func()
                # A loop that returns on its own is finished, not crashed
                logger.info(f"✅ [COMPLETED] {name} exited.")
                break
            except asyncio.CancelledError:
                logger.info(f"🛑 [SHUTDOWN] {name} task cancelled gracefully.")
                raise
            except Exception as e:
                logger.error(f"❌ {name} CRITICAL FAILURE: {e}. Restarting in {retry_delay}s...")
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 2, max_delay)
    finally:
        active_services.discard(name)
