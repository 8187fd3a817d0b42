"""
Office Day Tracker — Telegram Bot.

Telegram is the user interface: logging an office day, checking today,
browsing and deleting past entries, attendance statistics and the
quarter configuration all go through these commands.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from datetime import date
from datetime import time as dt_time
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from officedays.config import settings
from officedays.core.errors import (
    InvalidQuarterConfiguration,
    NoCalendarAvailable,
    OfficeDayError,
)
from officedays.core.event_normalizer import find_duplicate_days, office_day_dates
from officedays.core.office_day_service import CalendarSession, OfficeDayService
from officedays.core.periods import (
    month_name,
    quarter_from_month,
    resolve_month,
    resolve_period,
)
from officedays.core.quarter_config import QUARTERS, QuarterConfig, QuarterConfigStore
from officedays.core.statistics import (
    calculate_month_stats,
    calculate_period_stats,
)
from officedays.data.models import (
    OfficeDayEvent,
    PeriodRange,
    PeriodStats,
    SelectedPeriod,
)
from officedays.ports.calendar_port import CalendarError

if TYPE_CHECKING:
    from officedays.ports.calendar_port import CalendarGateway
    from officedays.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

_HISTORY_LIMIT = 30

_STATS_USAGE = (
    "Usage:\n"
    "/stats — this month\n"
    "/stats month <1-12> [year]\n"
    "/stats quarter <Q1-Q4> [year]\n"
    "/stats year [year]"
)


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Per-user state
# ---------------------------------------------------------------------------


def _service(context: ContextTypes.DEFAULT_TYPE) -> OfficeDayService:
    return context.bot_data["service"]


def _quarters(context: ContextTypes.DEFAULT_TYPE) -> QuarterConfigStore:
    store = context.user_data.get("quarters")
    if store is None:
        store = QuarterConfigStore()
        context.user_data["quarters"] = store
    return store


async def _session(context: ContextTypes.DEFAULT_TYPE) -> CalendarSession:
    """Return the user's calendar session, initializing it on first use."""
    session: CalendarSession | None = context.user_data.get("session")
    if session is None or session.calendar_id is None:
        session = await _service(context).initialize()
        context.user_data["session"] = session
    return session


async def _load_records(
    context: ContextTypes.DEFAULT_TYPE, period: PeriodRange | None = None
) -> list[OfficeDayEvent]:
    """Office days of `period`, or of the recent history window without one."""
    session = await _session(context)
    service = _service(context)
    if period is None:
        return await service.load_office_days(session, months=settings.HISTORY_MONTHS)
    return await service.load_office_days(session, start=period.start, end=period.end)


# ---------------------------------------------------------------------------
# Formatting and parsing helpers
# ---------------------------------------------------------------------------


def _format_day(day: date) -> str:
    """e.g. "Mon, Aug 4, 2025"."""
    return f"{day:%a}, {day:%b} {day.day}, {day.year}"


def _format_stats(stats: PeriodStats) -> str:
    return (
        f"📊 *{stats.period}*\n"
        f"Working days: {stats.working_days}\n"
        f"Office days: {stats.office_days}\n"
        f"Attendance: {stats.percentage}%"
    )


def _format_quarters(config: QuarterConfig) -> str:
    lines = ["*Quarter configuration:*"]
    for quarter in QUARTERS:
        months = config.months_for(quarter)
        names = ", ".join(month_name(m)[:3] for m in sorted(months)) or "(none)"
        lines.append(f"{quarter}: {names}")
    problems = config.coverage_problems()
    if problems:
        lines.append("")
        lines.append("⚠️ " + "; ".join(problems))
    return "\n".join(lines)


def _parse_day(raw: str) -> date | None:
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        return None


def _parse_month(raw: str) -> int | None:
    """Parse "8", "aug" or "August" into a 0-based month index."""
    token = raw.strip().lower()
    if token.isdigit():
        number = int(token)
        return number - 1 if 1 <= number <= 12 else None
    for index in range(12):
        name = month_name(index).lower()
        if len(token) >= 3 and name.startswith(token):
            return index
    return None


def _parse_year(raw: str) -> int | None:
    token = raw.strip()
    if token.isdigit() and 1900 <= int(token) <= 9999:
        return int(token)
    return None


def _require_year(raw: str) -> int:
    year = _parse_year(raw)
    if year is None:
        raise ValueError(f"Invalid year: {raw}")
    return year


def _parse_stats_args(
    args: list[str], today: date, config: QuarterConfig
) -> SelectedPeriod:
    """Turn /stats arguments into a SelectedPeriod. Raises ValueError."""
    if not args:
        return SelectedPeriod(kind="month", year=today.year, month=today.month - 1)

    head = args[0].strip().lower()
    rest = args[1:]

    # Shortcuts: "/stats Q2 2024" and "/stats 2024"
    if head.upper() in QUARTERS:
        head, rest = "quarter", args
    elif _parse_year(head) is not None and not rest:
        head, rest = "year", args

    year = today.year
    if head == "month":
        month = today.month - 1
        if rest:
            parsed = _parse_month(rest[0])
            if parsed is None:
                raise ValueError(f"Unknown month: {rest[0]}")
            month = parsed
        if len(rest) > 1:
            year = _require_year(rest[1])
        return SelectedPeriod(kind="month", year=year, month=month)

    if head == "quarter":
        if rest:
            quarter = rest[0].strip().upper()
            if quarter not in QUARTERS:
                raise ValueError(f"Unknown quarter: {rest[0]}")
        else:
            quarter = quarter_from_month(today.month - 1, config)
            if quarter == "Unknown":
                raise ValueError("This month is not assigned to any quarter")
        if len(rest) > 1:
            year = _require_year(rest[1])
        return SelectedPeriod(kind="quarter", year=year, quarter=quarter)

    if head == "year":
        if rest:
            year = _require_year(rest[0])
        return SelectedPeriod(kind="year", year=year)

    raise ValueError(f"Unknown period: {args[0]}")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to *Office Day Tracker*!\n\n"
        "I keep your in-office days in your calendar and tell you how often "
        "you've been in:\n"
        "• /log to record today as an office day\n"
        "• /month for this month's attendance\n"
        "• /stats for any month, quarter or year\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "*Available commands:*\n"
        "/log [YYYY-MM-DD] — Log an office day (default: today)\n"
        "/today — Check whether today is logged\n"
        "/history — Recent office days, with delete buttons\n"
        "/month — This month's attendance\n"
        "/stats — Attendance for a month, quarter or year\n"
        "/quarters — Show which months make up each quarter\n"
        "/setquarter <Q1-Q4> <months> — e.g. /setquarter Q1 2 3 4\n"
        "/resetquarters — Back to calendar quarters\n"
        "/help — Show this message",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_log(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /log [YYYY-MM-DD] — create the Office Day event."""
    service = _service(context)

    day = service.today()
    if context.args:
        parsed = _parse_day(context.args[0])
        if parsed is None:
            await update.message.reply_text("Please use the date format YYYY-MM-DD.")
            return
        day = parsed

    if not await service.has_permissions():
        await update.message.reply_text(
            "I don't have access to your calendar yet. "
            "Please finish the calendar setup and try again."
        )
        return

    try:
        session = await _session(context)
        if day == service.today() and await service.has_office_day_today(
            session, basis="utc"
        ):
            await update.message.reply_text("Today is already logged as an office day. ✅")
            return
        await service.log_office_day(day, session)
    except NoCalendarAvailable:
        await update.message.reply_text("I couldn't find a calendar to write to.")
        return
    except OfficeDayError as exc:
        logger.error("/log error: %s", exc)
        await update.message.reply_text(
            "Failed to log the office day. Please try again later."
        )
        return

    await update.message.reply_text(f"✅ Office day logged for {_format_day(day)}!")


@authorized_only
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today — is today logged?"""
    service = _service(context)
    logged = await service.has_office_day_today(
        context.user_data.get("session"), basis="utc"
    )
    if logged:
        await update.message.reply_text("✅ You're logged in the office today.")
    else:
        await update.message.reply_text("Today isn't logged yet. Send /log if you're in.")


@authorized_only
async def cmd_history(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /history — recent office days with delete buttons."""
    try:
        records = await _load_records(context)
    except (OfficeDayError, CalendarError) as exc:
        logger.error("/history error: %s", exc)
        await update.message.reply_text("Couldn't load your office days. Please try again.")
        return

    records = records[:_HISTORY_LIMIT]
    context.user_data["history"] = records

    if not records:
        await update.message.reply_text(
            f"No office days logged in the last {settings.HISTORY_MONTHS} months."
        )
        return

    duplicates = find_duplicate_days(records)
    lines = ["*Past office days:*\n"]
    keyboard = []
    for index, rec in enumerate(records):
        day = rec.start_date.date()
        flag = "  ⚠️ duplicate" if day in duplicates else ""
        lines.append(f"{index + 1}. {_format_day(day)}{flag}")
        keyboard.append(
            [InlineKeyboardButton(f"🗑 {day:%b} {day.day}", callback_data=f"delday:{index}")]
        )

    await update.message.reply_text(
        "\n".join(lines),
        parse_mode="Markdown",
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


async def _handle_delete_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Handle the inline button tap to delete an office day."""
    query = update.callback_query
    await query.answer()

    # Verify the user is authorized
    user = query.from_user
    if user is None or user.id not in settings.ALLOWED_USER_IDS:
        return

    index = int(query.data.split(":")[1])
    records: list[OfficeDayEvent] = context.user_data.get("history", [])
    if index >= len(records):
        await query.edit_message_text("That entry is gone. Run /history again.")
        return

    record = records[index]
    day = record.start_date.date()
    service = _service(context)

    try:
        await service.delete_office_day(record.id, day, context.user_data.get("session"))
    except OfficeDayError as exc:
        logger.error("delete callback error: %s", exc)
        await query.edit_message_text("Failed to delete the office day. Please try again.")
        return

    # Cached list is stale after a delete.
    context.user_data.pop("history", None)

    msg = f"✅ Office day for {_format_day(day)} deleted."
    if day == service.today():
        msg += "\nToday is no longer marked as an office day."
    await query.edit_message_text(msg)


@authorized_only
async def cmd_month(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /month — this month's attendance."""
    today = _service(context).today()
    period = resolve_month(today.year, today.month - 1)
    try:
        records = await _load_records(context, period)
    except (OfficeDayError, CalendarError) as exc:
        logger.error("/month error: %s", exc)
        await update.message.reply_text("Couldn't load your office days. Please try again.")
        return

    stats = calculate_month_stats(today.year, today.month - 1, office_day_dates(records))
    await update.message.reply_text(_format_stats(stats), parse_mode="Markdown")


@authorized_only
async def cmd_stats(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stats — attendance for a month, quarter or year."""
    today = _service(context).today()
    config = _quarters(context).get()

    try:
        selection = _parse_stats_args(list(context.args or []), today, config)
    except ValueError as exc:
        await update.message.reply_text(f"{exc}\n\n{_STATS_USAGE}")
        return

    try:
        period = resolve_period(selection, config)
    except InvalidQuarterConfiguration as exc:
        await update.message.reply_text(
            f"⚠️ {exc}\nFix it with /setquarter or /resetquarters."
        )
        return

    # The whole period is loaded, whatever HISTORY_MONTHS says.
    try:
        records = await _load_records(context, period)
    except (OfficeDayError, CalendarError) as exc:
        logger.error("/stats error: %s", exc)
        await update.message.reply_text("Couldn't load your office days. Please try again.")
        return

    stats = calculate_period_stats(selection, office_day_dates(records), config)
    await update.message.reply_text(_format_stats(stats), parse_mode="Markdown")


@authorized_only
async def cmd_quarters(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /quarters — show the quarter configuration."""
    await update.message.reply_text(
        _format_quarters(_quarters(context).get()), parse_mode="Markdown"
    )


@authorized_only
async def cmd_setquarter(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /setquarter <Q1-Q4> <months...> — months as 1-12 or names."""
    args = list(context.args or [])
    if len(args) < 2 or args[0].upper() not in QUARTERS:
        await update.message.reply_text(
            "Usage: /setquarter <Q1-Q4> <months>\nExample: /setquarter Q1 2 3 4"
        )
        return

    months = []
    for raw in args[1:]:
        parsed = _parse_month(raw)
        if parsed is None:
            await update.message.reply_text(f"Unknown month: {raw}")
            return
        months.append(parsed)

    config = _quarters(context).update_quarter(args[0].upper(), months)
    await update.message.reply_text(_format_quarters(config), parse_mode="Markdown")


@authorized_only
async def cmd_resetquarters(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /resetquarters — restore calendar quarters."""
    store = _quarters(context)
    store.reset()
    await update.message.reply_text(_format_quarters(store.get()), parse_mode="Markdown")


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    calendar: CalendarGateway | None = None,
    notifier: NotificationPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        calendar: Calendar gateway. Defaults to the CALENDAR_PROVIDER adapter.
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    # Wire default adapters if not provided
    if calendar is None:
        from officedays.adapters.calendar_factory import create_calendar_adapter
        calendar = create_calendar_adapter()

    if notifier is None:
        from officedays.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    service = OfficeDayService(calendar, ZoneInfo(settings.TIMEZONE))
    app.bot_data["service"] = service
    app.bot_data["notifier"] = notifier

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("log", cmd_log))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("history", cmd_history))
    app.add_handler(CommandHandler("month", cmd_month))
    app.add_handler(CommandHandler("stats", cmd_stats))
    app.add_handler(CommandHandler("quarters", cmd_quarters))
    app.add_handler(CommandHandler("setquarter", cmd_setquarter))
    app.add_handler(CommandHandler("resetquarters", cmd_resetquarters))
    app.add_handler(CallbackQueryHandler(_handle_delete_callback, pattern=r"^delday:\d+$"))

    if settings.REMINDER_ENABLED:
        _setup_reminder(app, service, notifier)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _setup_reminder(
    app: Application,
    service: OfficeDayService,
    notifier: NotificationPort,
) -> None:
    """Register the weekday office-day reminder."""
    from officedays.core.scheduler import send_office_day_reminders

    tz = ZoneInfo(settings.TIMEZONE)
    reminder_time = dt_time(hour=settings.REMINDER_HOUR, minute=0, tzinfo=tz)

    async def _reminder_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await send_office_day_reminders(service, notifier, settings.ALLOWED_USER_IDS)

    # Telegram's job queue counts days from Sunday = 0.
    app.job_queue.run_daily(
        _reminder_job_callback,
        time=reminder_time,
        days=(1, 2, 3, 4, 5),
        name="office_day_reminder",
    )

    logger.info(
        "Office day reminder scheduled at %02d:00 %s on weekdays",
        settings.REMINDER_HOUR,
        settings.TIMEZONE,
    )


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Office Day Tracker bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
