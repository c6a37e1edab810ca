from __future__ import annotations

from aiogram import Router, types
from aiogram.filters import Command

from wishpool.bot.utils import (
    GENERIC_ERROR,
    SLOW_DOWN,
    check_rate_limit,
    ensure_participant,
    format_status,
    log_handler_exception,
    quote,
)
from wishpool.db import get_session
from wishpool.services import WishPoolError, engine, wishes

router = Router()


@router.message(Command("status"))
async def status_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "status"):
        await message.answer(SLOW_DOWN)
        return

    try:
        with get_session() as session:
            status = engine.get_status(session)
        await message.answer(format_status(status))
    except Exception as exc:
        log_handler_exception("status", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("wish"))
async def wish_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "wish"):
        await message.answer(SLOW_DOWN)
        return

    if message.chat.type != "private":
        await message.answer("Wishes can only be submitted in a private chat.")
        return

    parts = (message.text or "").split(maxsplit=1)
    text = parts[1] if len(parts) > 1 else None

    try:
        with get_session() as session:
            participant = ensure_participant(session, message.from_user)

            if text is None:
                mine = engine.get_my_wish(session, participant.id)
                if mine.wish is None:
                    reply = "You have not submitted a wish yet."
                    if mine.can_create:
                        reply += "\nSend /wish &lt;text&gt; to add one."
                else:
                    reply = f"Your wish:\n{quote(mine.wish.text)}"
                    if mine.can_edit:
                        reply += "\n\nYou can change it once with /wish &lt;new text&gt;."
                await message.answer(reply)
                return

            result = wishes.submit(session, participant.id, text)

        if result.mode == wishes.MODE_CREATED:
            await message.answer("Your wish has been added to the pool!")
        else:
            await message.answer("Your wish has been updated. This was your one allowed edit.")
    except WishPoolError as exc:
        await message.answer(str(exc))
    except Exception as exc:
        log_handler_exception("wish", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("reveal"))
async def reveal_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "reveal"):
        await message.answer(SLOW_DOWN)
        return

    if message.chat.type != "private":
        await message.answer("Reveals only work in a private chat.")
        return

    try:
        with get_session() as session:
            participant = ensure_participant(session, message.from_user)
            result = engine.reveal(session, participant.id)
        await message.answer(f"The wish you drew:\n\n{quote(result.wish_text)}")
    except WishPoolError as exc:
        await message.answer(str(exc))
    except Exception as exc:
        log_handler_exception("reveal", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)
