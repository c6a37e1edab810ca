from __future__ import annotations

import asyncio
import datetime

import uvloop
from aiogram.types import BotCommand, BotCommandScopeDefault
from loguru import logger

from wishpool.bot import bot, dp, settings
from wishpool.core.logging import setup_logging
from wishpool.db import get_session, init_engine
from wishpool.services import pool


USERS_COMMANDS: dict[str, str] = {
    "start": "start",
    "status": "pool status",
    "wish": "show or submit your wish",
    "reveal": "reveal the wish you drew",
}


async def set_default_commands() -> None:
    await bot.set_my_commands(
        [
            BotCommand(command=command, description=description)
            for command, description in USERS_COMMANDS.items()
        ],
        scope=BotCommandScopeDefault(),
    )


def ensure_pool() -> None:
    with get_session() as session:
        config = pool.ensure(
            session,
            capacity=settings.default_capacity,
            window=datetime.timedelta(hours=settings.deadline_hours),
        )
        logger.info(
            "Pool round {cycle} is {phase}, deadline {deadline}",
            cycle=config.cycle,
            phase=config.phase.value,
            deadline=config.deadline,
        )


async def on_startup() -> None:
    logger.info("bot starting...")

    await set_default_commands()

    bot_info = await bot.get_me()

    logger.info("Name     - {name}", name=bot_info.full_name)
    logger.info("Username - @{username}", username=bot_info.username)
    logger.info("ID       - {id}", id=bot_info.id)
    logger.info("Organizers - {count}", count=len(settings.admin_ids))

    logger.info("bot started")


async def on_shutdown() -> None:
    logger.info("bot stopping...")

    await dp.storage.close()

    await bot.session.close()

    logger.info("bot stopped")


async def main() -> None:
    setup_logging(settings.log_level, settings.log_path)
    init_engine(settings.database_url)
    ensure_pool()

    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)

    await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())


if __name__ == "__main__":
    if not getattr(asyncio, "debug", False):
        uvloop.install()

    asyncio.run(main())
