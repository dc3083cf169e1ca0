import asyncio
import logging
from logging.handlers import RotatingFileHandler
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from talent_signup.core.config import BOT_TOKEN, settings
from talent_signup.handlers import auth, common, signup
from talent_signup.middlewares.logging import LoggingMiddleware, CustomFormatter
from talent_signup.middlewares.session_timeout import SessionTimeoutMiddleware

def setup_logging():
    log_level = settings.LOG_LEVEL.upper()

    logging.basicConfig(level=log_level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    file_handler = RotatingFileHandler(settings.LOG_FILE, maxBytes=5*1024*1024, backupCount=5)
    file_handler.setLevel(log_level)
    file_handler.setFormatter(CustomFormatter('%(asctime)s - %(name)s - %(levelname)s - %(user_id)s - %(message)s'))

    logging.getLogger().addHandler(file_handler)
    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

async def main():
    setup_logging()

    bot = Bot(token=BOT_TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))

    dp = Dispatcher()

    for observer in (dp.message, dp.callback_query):
        observer.outer_middleware(LoggingMiddleware())
        observer.outer_middleware(SessionTimeoutMiddleware())

    dp.include_router(common.router)
    dp.include_router(signup.router)
    dp.include_router(auth.router)

    try:
        await dp.start_polling(bot)
    except Exception as e:
        logging.critical(f"Critical error starting bot: {e}", exc_info=True)
    finally:
        await bot.session.close()

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.info("Bot stopped gracefully")
    except Exception as e:
        logging.critical(f"Unexpected error in main: {e}", exc_info=True)
