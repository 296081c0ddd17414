import asyncio
from telegram import Bot
from telegram.error import TelegramError

from core.config import ALERT_BOT_TOKEN, ALERT_CHAT_ID
from core.logger import setup_logger

logger = setup_logger("ALERTS")

alert_queue = asyncio.Queue(maxsize=100)


async def queue_alert(text: str):
    """Operator-facing notice. Always logged; forwarded to Telegram when configured."""
    logger.info(text)
    try:
        alert_queue.put_nowait(text)
    except asyncio.QueueFull:
        logger.warning("Alert queue full, dropping operator notice")


async def alert_dispatcher(bot: Bot = None, chat_id: str = ALERT_CHAT_ID):
    """Drains the alert queue into the operator chat. Runs until cancelled."""
    if bot is None and ALERT_BOT_TOKEN:
        bot = Bot(ALERT_BOT_TOKEN)

    while True:
        text = await alert_queue.get()
        try:
            if bot and chat_id:
                await bot.send_message(chat_id=chat_id, text=text, parse_mode="HTML")
        except TelegramError as e:
            logger.error(f"Alert dispatch failed: {e}")
        finally:
            alert_queue.task_done()
