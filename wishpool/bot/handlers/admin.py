from __future__ import annotations

import datetime

from aiogram import Router, types
from aiogram.filters import Command
from aiogram.types import BufferedInputFile
from loguru import logger

from wishpool.bot.keyboards import (
    CONFIRM_ASSIGN,
    CONFIRM_RESET_ALL,
    CONFIRM_RESET_POOL,
    confirm_assign_keyboard,
    confirm_reset_all_keyboard,
    confirm_reset_pool_keyboard,
)
from wishpool.bot.utils import (
    GENERIC_ERROR,
    SLOW_DOWN,
    check_rate_limit,
    format_instant,
    is_organizer,
    log_handler_exception,
    parse_deadline,
)
from wishpool.core.config import load_settings
from wishpool.db import get_session, repo
from wishpool.services import ErrorCode, ValidationError, WishPoolError, engine, export, pool

router = Router()

settings = load_settings()
deadline_window = datetime.timedelta(hours=settings.deadline_hours)

NOT_ORGANIZER = "Only the organizer can do that."


def _allowed(user_id: int) -> bool:
    return is_organizer(settings.admin_ids, user_id)


@router.message(Command("admin"))
async def admin_status_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "admin"):
        await message.answer(SLOW_DOWN)
        return

    if not _allowed(message.from_user.id):
        await message.answer(NOT_ORGANIZER)
        return

    try:
        with get_session() as session:
            status = engine.get_admin_status(session)
            config = status.config
            lines = [
                f"Phase: {config.phase.value}",
                f"Round: {config.cycle}",
                f"Capacity: {config.capacity}",
                f"Deadline: {format_instant(config.deadline)}",
                f"Participants: {status.participants}",
                f"Wishes: {status.wishes}",
                f"Assignments: {status.assignments}",
            ]
            if config.assigned_at:
                lines.append(f"Assigned at: {format_instant(config.assigned_at)}")
            if config.last_assignment_seed is not None:
                lines.append(f"Last seed: {config.last_assignment_seed}")

        await message.answer("\n".join(lines))
    except Exception as exc:
        log_handler_exception("admin", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("setcapacity"))
async def set_capacity_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "setcapacity"):
        await message.answer(SLOW_DOWN)
        return

    if not _allowed(message.from_user.id):
        await message.answer(NOT_ORGANIZER)
        return

    parts = (message.text or "").split(maxsplit=1)
    if len(parts) < 2:
        await message.answer("Usage: /setcapacity 50")
        return

    try:
        try:
            capacity = int(parts[1])
        except ValueError:
            raise ValidationError(ErrorCode.INVALID_CAPACITY) from None

        with get_session() as session:
            config = pool.configure(session, capacity=capacity)
            capacity = config.capacity
        await message.answer(f"Capacity set to {capacity}.")
    except WishPoolError as exc:
        await message.answer(str(exc))
    except Exception as exc:
        log_handler_exception("setcapacity", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("setdeadline"))
async def set_deadline_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "setdeadline"):
        await message.answer(SLOW_DOWN)
        return

    if not _allowed(message.from_user.id):
        await message.answer(NOT_ORGANIZER)
        return

    parts = (message.text or "").split(maxsplit=1)
    if len(parts) < 2:
        await message.answer("Usage: /setdeadline 2026-12-20T18:00 (UTC) or epoch milliseconds")
        return

    try:
        deadline = parse_deadline(parts[1])
        with get_session() as session:
            config = pool.configure(session, deadline=deadline)
            deadline = config.deadline
        await message.answer(f"Deadline set to {format_instant(deadline)}.")
    except WishPoolError as exc:
        await message.answer(str(exc))
    except Exception as exc:
        log_handler_exception("setdeadline", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("assign"))
async def assign_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "assign"):
        await message.answer(SLOW_DOWN)
        return

    if not _allowed(message.from_user.id):
        await message.answer(NOT_ORGANIZER)
        return

    try:
        with get_session() as session:
            status = engine.get_status(session)

        await message.answer(
            f"Assign pairs for {status.total_wishes} wishes now? This cannot be undone for this round.",
            reply_markup=confirm_assign_keyboard(),
        )
    except Exception as exc:
        log_handler_exception("assign", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.callback_query(lambda c: c.data == CONFIRM_ASSIGN)
async def confirm_assign_callback_handler(query: types.CallbackQuery) -> None:
    if not check_rate_limit(query.from_user.id, CONFIRM_ASSIGN):
        await query.answer(SLOW_DOWN, show_alert=True)
        return

    if not _allowed(query.from_user.id):
        await query.answer(NOT_ORGANIZER, show_alert=True)
        return

    try:
        with get_session() as session:
            result = engine.assign(session)
            givers = [repo.get_participant(session, giver_id) for giver_id, _ in result.pairs]
            giver_telegram_ids = [giver.telegram_id for giver in givers if giver is not None]

        await query.answer(f"Assigned {len(result.pairs)} pairs!", show_alert=True)

        for telegram_id in giver_telegram_ids:
            try:
                await query.bot.send_message(
                    telegram_id,
                    "Pairs have been assigned! Send /reveal to see the wish you drew.",
                )
            except Exception as exc:  # pragma: no cover - network dependent
                logger.bind(user_id=telegram_id).warning(
                    "Failed to send reveal notice: {error}", error=str(exc)
                )
    except WishPoolError as exc:
        await query.answer(str(exc), show_alert=True)
    except Exception as exc:
        log_handler_exception(CONFIRM_ASSIGN, query.from_user.id, query.message.chat.id, exc)
        await query.answer(GENERIC_ERROR, show_alert=True)


@router.message(Command("resetpool"))
async def reset_pool_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "resetpool"):
        await message.answer(SLOW_DOWN)
        return

    if not _allowed(message.from_user.id):
        await message.answer(NOT_ORGANIZER)
        return

    await message.answer(
        "Start a new round? All wishes and pairs will be deleted; participants are kept.",
        reply_markup=confirm_reset_pool_keyboard(),
    )


@router.callback_query(lambda c: c.data == CONFIRM_RESET_POOL)
async def confirm_reset_pool_callback_handler(query: types.CallbackQuery) -> None:
    if not check_rate_limit(query.from_user.id, CONFIRM_RESET_POOL):
        await query.answer(SLOW_DOWN, show_alert=True)
        return

    if not _allowed(query.from_user.id):
        await query.answer(NOT_ORGANIZER, show_alert=True)
        return

    try:
        with get_session() as session:
            config = engine.reset_pool(session, window=deadline_window)
            cycle = config.cycle
            deadline = config.deadline
        await query.answer(
            f"Round {cycle} is open until {format_instant(deadline)}.", show_alert=True
        )
    except Exception as exc:
        log_handler_exception(CONFIRM_RESET_POOL, query.from_user.id, query.message.chat.id, exc)
        await query.answer(GENERIC_ERROR, show_alert=True)


@router.message(Command("resetall"))
async def reset_all_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "resetall"):
        await message.answer(SLOW_DOWN)
        return

    if not _allowed(message.from_user.id):
        await message.answer(NOT_ORGANIZER)
        return

    await message.answer(
        "Erase everything? Participants, wishes and pairs will be deleted and round 1 starts over.",
        reply_markup=confirm_reset_all_keyboard(),
    )


@router.callback_query(lambda c: c.data == CONFIRM_RESET_ALL)
async def confirm_reset_all_callback_handler(query: types.CallbackQuery) -> None:
    if not check_rate_limit(query.from_user.id, CONFIRM_RESET_ALL):
        await query.answer(SLOW_DOWN, show_alert=True)
        return

    if not _allowed(query.from_user.id):
        await query.answer(NOT_ORGANIZER, show_alert=True)
        return

    try:
        with get_session() as session:
            engine.reset_all(
                session,
                window=deadline_window,
                capacity=settings.default_capacity,
            )
        await query.answer("Everything has been erased. Round 1 is open.", show_alert=True)
    except Exception as exc:
        log_handler_exception(CONFIRM_RESET_ALL, query.from_user.id, query.message.chat.id, exc)
        await query.answer(GENERIC_ERROR, show_alert=True)


@router.message(Command("export"))
async def export_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "export"):
        await message.answer(SLOW_DOWN)
        return

    if not _allowed(message.from_user.id):
        await message.answer(NOT_ORGANIZER)
        return

    try:
        with get_session() as session:
            content = export.export_csv(session)

        await message.answer_document(
            BufferedInputFile(content.encode("utf-8"), filename="wishpool_export.csv"),
            caption="Wish pool export",
        )
    except Exception as exc:
        log_handler_exception("export", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)
