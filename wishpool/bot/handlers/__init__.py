from aiogram import Router

from wishpool.bot.handlers import admin, participant, start

router = Router()
router.include_router(start.router)
router.include_router(participant.router)
router.include_router(admin.router)
