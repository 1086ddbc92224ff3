"""
Run the Library Bot with a healthcheck HTTP server in one process.

The HTTP server starts first so hosting platforms see the service as
alive even while the bot is still connecting.
"""

import asyncio
import logging
import sys
from typing import Optional

from aiohttp import web

from bots.library_bot import LibraryBot
from core.config import Config
from utils.admin_helpers import is_admin_chat_configured

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


async def _handle_health(_: web.Request) -> web.Response:
    return web.Response(text="OK")


def create_web_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/", _handle_health)
    app.router.add_get("/health", _handle_health)
    return app


async def start_web_server(app: web.Application, port: int) -> web.AppRunner:
    """Start aiohttp healthcheck server on port."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host="0.0.0.0", port=port)
    await site.start()
    logger.info(f"🌐 HTTP server started on port {port}")
    logger.info(f"🌐 Healthcheck: http://0.0.0.0:{port}/health")
    return runner


async def main():
    """Start the healthcheck server and the bot."""
    library_bot: Optional[LibraryBot] = None
    web_runner: Optional[web.AppRunner] = None

    logger.info("=" * 60)
    logger.info("🚀 Starting Library Bot")
    logger.info("=" * 60)

    try:
        web_runner = await start_web_server(create_web_app(), Config.PORT)
    except Exception as e:
        logger.error(f"❌ Could not start HTTP server: {e}", exc_info=True)
        logger.error("⚠️ Continuing without healthcheck")
        web_runner = None

    try:
        if not Config.validate():
            logger.error("❌ Invalid configuration: BOT_TOKEN is not set")
            if web_runner:
                # Keep the healthcheck up so the container is not restarted in a loop
                logger.info("🌐 HTTP server is running. Waiting for configuration fix...")
                while True:
                    await asyncio.sleep(60)
            return

        Config.ensure_data_directory()
        logger.info(f"🗄️ DATABASE_PATH: '{Config.DATABASE_PATH}'")
        logger.info(f"👮 Admins configured: {len(Config.ADMIN_IDS)}")
        if not Config.SOURCE_CHAT_ID:
            logger.warning("⚠️ SOURCE_CHAT_ID is not set: content forwarding will fail")
        if not is_admin_chat_configured():
            logger.warning("⚠️ ADMIN_CHAT_ID is not set: admin notifications are disabled")

        library_bot = LibraryBot()
        await library_bot.start()
    finally:
        if library_bot:
            try:
                await library_bot.stop()
            except Exception as e:
                logger.error(f"Error stopping bot: {e}", exc_info=True)
        if web_runner:
            await web_runner.cleanup()
        logger.info("Stopped")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Stopped by user")
