#!/usr/bin/env python3
"""Telegram command bot relaying to the todo backend and Gemini summaries."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Message, Update
from telegram.error import BadRequest
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

REPO_ROOT = Path(__file__).resolve().parents[2]
PLATFORM_DIR = REPO_ROOT / "platform"
if str(PLATFORM_DIR) not in sys.path:
    sys.path.append(str(PLATFORM_DIR))

from taskrelay.config import MAX_PAGE_SIZE, load_settings, parse_args  # noqa: E402
from taskrelay.errors import BackendRequestError, ConfigError, InputInvalidError, RelayError  # noqa: E402
from taskrelay.parsing import (  # noqa: E402
    parse_command_argument,
    parse_display_number,
    parse_list_arguments,
    parse_page_control,
)
from taskrelay.rendering import DisplayPayload  # noqa: E402
from taskrelay.services import RelayServices, build_services  # noqa: E402

SERVICES_KEY = "relay"
PAGE_CONTROL_PATTERN = r"^todo_(?:prev|next)_\d+$"
MESSAGE_LIMIT = 4000
EVICTION_INTERVAL = 60

HELP_TEXT = (
    "Hello {name}, I am the task relay bot.\n"
    "Available commands:\n"
    "/ping — Check that the bot is alive.\n"
    "/hello — Say hello.\n"
    "/help — This message.\n"
    "/summarize <text> — Summarize a long text.\n"
    "/summarize_link <url> — Summarize a web page.\n"
    "\n"
    "Todo list:\n"
    "/todo_create — Guided flow to create a task.\n"
    "/todo_list [page] [size] — Show your tasks (5 per page by default).\n"
    "/todo_update [number] — Edit a task by its number in the list.\n"
    "/todo_delete [number] — Delete a task by its number in the list.\n"
    "/cancel — Stop the current create/update/delete flow."
)


def _services(context: ContextTypes.DEFAULT_TYPE) -> RelayServices:
    return context.bot_data[SERVICES_KEY]


def _user_id(update: Update) -> Optional[int]:
    user = update.effective_user
    return user.id if user else None


def _resolve_actor_id(update: Update) -> Optional[int]:
    query = update.callback_query
    if query is not None and query.from_user is not None:
        return query.from_user.id
    chat = update.effective_chat
    if chat is not None and chat.type == "private":
        return chat.id
    return None


def build_page_markup(payload: DisplayPayload) -> Optional[InlineKeyboardMarkup]:
    if not payload.controls:
        return None
    row = [
        InlineKeyboardButton(text=control.label, callback_data=control.callback_data)
        for control in payload.controls
    ]
    return InlineKeyboardMarkup([row])


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    chunks: List[str] = []
    remaining = text
    while len(remaining) > limit:
        cut = remaining.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(remaining[:cut])
        remaining = remaining[cut:].lstrip("\n")
    if remaining:
        chunks.append(remaining)
    return chunks


async def _reply_all(message: Message, texts: Iterable[str]) -> None:
    for text in texts:
        for chunk in split_message(text):
            await message.reply_text(chunk)


async def _reply_payload(message: Message, payload: DisplayPayload) -> None:
    await message.reply_text(payload.text, reply_markup=build_page_markup(payload))


async def _edit_menu_message(query, text: str, reply_markup: Optional[InlineKeyboardMarkup]) -> None:
    try:
        await query.edit_message_text(text, reply_markup=reply_markup)
    except BadRequest as exc:
        if "message is not modified" in str(exc).lower():
            return
        raise


# ── General commands ───────────────────────────────────────────────


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.message is None:
        return
    await update.message.reply_text("Hi! Use /help to see what I can do.")


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.message is None:
        return
    user = update.effective_user
    name = (user.first_name or user.username or "there") if user else "there"
    await update.message.reply_text(HELP_TEXT.format(name=name))


async def ping(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.message is None:
        return
    await update.message.reply_text("Pong!")


async def hello(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.message is None:
        return
    user = update.effective_user
    name = (user.first_name or user.username) if user else None
    await update.message.reply_text(f"Hello, {name or 'there'}!")


# ── Summaries ──────────────────────────────────────────────────────


async def summarize_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.message
    if message is None:
        return
    text = parse_command_argument(message.text)
    if not text:
        await message.reply_text("Please provide some text to summarize after the command.")
        return
    relay = _services(context)
    await message.reply_text("Okay, I will summarize this for you. Please wait...")
    try:
        summary = await relay.summarizer.summarize(text)
    except RelayError as exc:
        logging.warning("Summary failed for user %s: %s", _user_id(update), exc)
        await message.reply_text("Sorry, something went wrong while summarizing that text.")
        return
    await _reply_all(message, [summary])


async def summarize_link_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.message
    if message is None:
        return
    url = parse_command_argument(message.text)
    if not url:
        await message.reply_text("Please provide a valid URL.")
        return
    relay = _services(context)
    await message.reply_text("Fetching the web page... Please wait.")
    try:
        page_content = await relay.summarizer.fetch_page(url)
    except InputInvalidError as exc:
        await message.reply_text(str(exc))
        return
    except RelayError as exc:
        logging.warning("Reading %s failed: %s", url, exc)
        await message.reply_text("Sorry, I couldn't open that URL.")
        return

    if not page_content:
        await message.reply_text("That page has no readable content.")
        return

    await message.reply_text("Page loaded. Summarizing its content now...")
    try:
        summary = await relay.summarizer.summarize(page_content)
    except RelayError as exc:
        logging.warning("Summary of %s failed: %s", url, exc)
        await message.reply_text("Sorry, something went wrong while summarizing the page.")
        return
    await _reply_all(message, ["Here is a summary of the page:\n" + summary])


# ── Todo commands ──────────────────────────────────────────────────


async def todo_list(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.message
    user_id = _user_id(update)
    if message is None or user_id is None:
        return
    relay = _services(context)
    try:
        page, size = parse_list_arguments(message.text, max_page_size=MAX_PAGE_SIZE)
    except InputInvalidError as exc:
        await message.reply_text(str(exc))
        return
    async with relay.store.lock_for(user_id):
        try:
            payload = await relay.renderer.render(user_id, page, size or relay.settings.page_size)
        except BackendRequestError as exc:
            await message.reply_text(f"Could not load your tasks: {exc}")
            return
    await _reply_payload(message, payload)


async def todo_create(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.message
    user_id = _user_id(update)
    if message is None or user_id is None:
        return
    relay = _services(context)
    async with relay.store.lock_for(user_id):
        replies = relay.engine.start_create(user_id)
    await _reply_all(message, replies)


async def _start_task_flow(update: Update, context: ContextTypes.DEFAULT_TYPE, *, command: str) -> None:
    message = update.message
    user_id = _user_id(update)
    if message is None or user_id is None:
        return
    relay = _services(context)
    argument = parse_command_argument(message.text)

    number: Optional[int] = None
    if argument:
        try:
            number = parse_display_number(argument)
        except InputInvalidError as exc:
            await message.reply_text(str(exc))
            return

    async with relay.store.lock_for(user_id):
        payload: Optional[DisplayPayload] = None
        if number is None or not relay.tracker.has_rendered(user_id):
            page = relay.tracker.current_page(user_id) or 1
            try:
                payload = await relay.renderer.render(user_id, page)
            except BackendRequestError as exc:
                await message.reply_text(f"Could not load your tasks: {exc}")
                return
        if number is None:
            replies = [f"Reply with /{command} <number> using a number from this list."]
        elif command == "todo_update":
            replies = relay.engine.start_update(user_id, number)
        else:
            replies = relay.engine.start_delete(user_id, number)

    if payload is not None:
        await _reply_payload(message, payload)
    await _reply_all(message, replies)


async def todo_update(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await _start_task_flow(update, context, command="todo_update")


async def todo_delete(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await _start_task_flow(update, context, command="todo_delete")


async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.message
    user_id = _user_id(update)
    if message is None or user_id is None:
        return
    relay = _services(context)
    async with relay.store.lock_for(user_id):
        replies = relay.engine.cancel(user_id)
    await _reply_all(message, replies)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.message
    user_id = _user_id(update)
    if message is None or message.text is None or user_id is None:
        return
    relay = _services(context)
    async with relay.store.lock_for(user_id):
        if relay.engine.is_active(user_id):
            replies = await relay.engine.step(user_id, message.text)
        else:
            replies = relay.engine.expiry_notice(user_id)
    if not replies:
        return
    await _reply_all(message, replies)


async def page_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    if query is None:
        return
    page = parse_page_control(query.data)
    if page is None:
        await query.answer()
        return
    user_id = _resolve_actor_id(update)
    if user_id is None:
        return

    relay = _services(context)
    async with relay.store.lock_for(user_id):
        try:
            payload = await relay.renderer.render(user_id, page)
        except BackendRequestError as exc:
            await query.answer(f"Could not load tasks: {exc}", show_alert=True)
            return
    await _edit_menu_message(query, payload.text, build_page_markup(payload))
    await query.answer()


# ── Lifecycle ──────────────────────────────────────────────────────


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logging.error("Unhandled error while processing update %r", update, exc_info=context.error)
    if isinstance(update, Update) and update.effective_message is not None:
        try:
            await update.effective_message.reply_text("Something went wrong. Please try again.")
        except Exception:  # noqa: BLE001
            logging.exception("Failed to report error to user")


async def evict_idle_conversations(context: ContextTypes.DEFAULT_TYPE) -> None:
    _services(context).store.evict_expired()


async def _shutdown(application: Application) -> None:
    relay = application.bot_data.get(SERVICES_KEY)
    if relay is not None:
        await relay.aclose()


def build_application(relay: RelayServices) -> Application:
    application = (
        ApplicationBuilder()
        .token(relay.settings.telegram_token)
        .concurrent_updates(True)
        .post_shutdown(_shutdown)
        .build()
    )
    application.bot_data[SERVICES_KEY] = relay
    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("ping", ping))
    application.add_handler(CommandHandler("hello", hello))
    application.add_handler(CommandHandler("summarize", summarize_command))
    application.add_handler(CommandHandler("summarize_link", summarize_link_command))
    application.add_handler(CommandHandler("todo_create", todo_create))
    application.add_handler(CommandHandler("todo_list", todo_list))
    application.add_handler(CommandHandler("todo_update", todo_update))
    application.add_handler(CommandHandler("todo_delete", todo_delete))
    application.add_handler(CommandHandler("cancel", cancel_command))
    application.add_handler(CallbackQueryHandler(page_callback, pattern=PAGE_CONTROL_PATTERN))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))
    application.add_error_handler(on_error)
    if application.job_queue is not None:
        application.job_queue.run_repeating(
            evict_idle_conversations, interval=EVICTION_INTERVAL, first=EVICTION_INTERVAL
        )
    else:
        logging.warning("JobQueue unavailable; idle conversations expire only when read.")
    return application


def main() -> None:
    args = parse_args()
    try:
        settings = load_settings(args)
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    application = build_application(build_services(settings))
    logging.info("Bot is starting; press CTRL-C to exit.")
    application.run_polling(drop_pending_updates=True)


if __name__ == "__main__":
    main()
