from aiogram.utils.keyboard import InlineKeyboardBuilder

CONFIRM_ASSIGN = "confirm_assign"
CONFIRM_RESET_POOL = "confirm_reset_pool"
CONFIRM_RESET_ALL = "confirm_reset_all"


def confirm_keyboard(text: str, callback_data: str):
    keyboard = InlineKeyboardBuilder()
    keyboard.button(text=text, callback_data=callback_data)
    return keyboard.as_markup()


def confirm_assign_keyboard():
    return confirm_keyboard("Yes, assign pairs now!", CONFIRM_ASSIGN)


def confirm_reset_pool_keyboard():
    return confirm_keyboard("Yes, start a new round", CONFIRM_RESET_POOL)


def confirm_reset_all_keyboard():
    return confirm_keyboard("Yes, erase everything", CONFIRM_RESET_ALL)
