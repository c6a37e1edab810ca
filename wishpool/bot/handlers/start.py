from aiogram import Router, types
from aiogram.filters import CommandStart

from wishpool.bot.utils import (
    GENERIC_ERROR,
    SLOW_DOWN,
    check_rate_limit,
    ensure_participant,
    format_status,
    log_handler_exception,
)
from wishpool.db import get_session
from wishpool.services import engine

router = Router()

HELP_TEXT = (
    "Hello! I'm the Wish Pool bot.\n\n"
    "Send /wish followed by your wish (up to 200 characters) while the pool is open. "
    "You can change it once with another /wish.\n\n"
    "When the organizer assigns pairs, use /reveal to see the wish you drew. "
    "/status shows how the pool is doing."
)


@router.message(CommandStart())
async def command_start_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "start"):
        await message.answer(SLOW_DOWN)
        return

    if message.chat.type != "private":
        await message.answer("Please message me in a private chat to take part in the wish pool.")
        return

    try:
        with get_session() as session:
            ensure_participant(session, message.from_user)
            status = engine.get_status(session)

        await message.answer(HELP_TEXT + "\n\n" + format_status(status))
    except Exception as exc:
        log_handler_exception("start", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)
