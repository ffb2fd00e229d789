"""Discord bot front end for browsing Canvas work and drafting assignments."""

import logging
from typing import Dict, List, Optional, Tuple

import discord
from discord.ext import commands

from canvas_api.client import CanvasClient, CanvasAPIError, CanvasAuthError
from config import BOT_TOKEN, CHANNEL_ID, LOG_LEVEL, PERSISTED_CACHE_TTL
from constants import ASSIGNMENTS_COLLECTION, DEFAULT_GRADE_LEVEL, LINK_JOB_TYPES, MAX_MESSAGE_LENGTH
from database.db_manager import init_db
from datasync.persistent import PersistentCollectionCache
from jobs.errors import JobError, JobFailedError, JobTimeoutError
from jobs.store import JobStore, create_supabase_client
from services.canvas_service import CanvasDataService, format_courses, format_assignments
from services.link_service import LinkProcessingService
from services.writing_service import WritingService, WritingServiceError, DraftHistory
from utils.datetime_utils import format_local
from utils.sync import sync_canvas_data

logger = logging.getLogger(__name__)

RECONNECT_MESSAGE = (
    "🔑 Canvas rejected the saved access token. Generate a new token in Canvas "
    "(Account → Settings → New Access Token), update CANVAS_TOKEN and restart the bot."
)


# ========================================
# Helper Functions
# ========================================

def describe_error(error: Exception) -> str:
    """User-facing message for a failed command."""
    if isinstance(error, CanvasAuthError):
        return RECONNECT_MESSAGE
    if isinstance(error, CanvasAPIError):
        return "❌ Couldn't reach Canvas. Please try again in a moment (or use `!refresh`)."
    if isinstance(error, JobTimeoutError):
        return "⌛ Processing timed out. Please try again later."
    if isinstance(error, JobFailedError):
        return f"❌ Processing failed: {error.message}"
    if isinstance(error, JobError):
        return "❌ Couldn't start processing for that link."
    if isinstance(error, WritingServiceError):
        return "❌ The writing assistant failed. Please try again."
    if isinstance(error, ValueError):
        return f"⚠️ {error}"
    return "❌ Something went wrong. Please try again later."


def chunk_lines(lines: List[str], limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Join lines into messages no longer than `limit` characters."""
    messages: List[str] = []
    current = ""
    for line in lines:
        if len(line) > limit:
            line = line[:limit - 1] + "…"
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            messages.append(current)
            current = line
        else:
            current = candidate
    if current:
        messages.append(current)
    return messages


def find_assignment(assignments: List[dict], assignment_id: str) -> Optional[dict]:
    for assignment in assignments:
        if str(assignment.get("id")) == str(assignment_id):
            return assignment
    return None


# ========================================
# Bot
# ========================================

class CheatSheetBot(commands.Bot):
    """Holds the services for the bot's lifetime and stops background refresh on close."""

    def __init__(self) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(command_prefix="!", intents=intents)
        self.canvas: Optional[CanvasDataService] = None
        self.links: Optional[LinkProcessingService] = None
        self.writing: Optional[WritingService] = None
        # user id -> (course id, assignment id, draft history)
        self.drafts: Dict[int, Tuple[str, str, DraftHistory]] = {}
        self._synced_once = False

    def build_services(self) -> None:
        self.canvas = CanvasDataService(
            CanvasClient(),
            persisted=PersistentCollectionCache(ASSIGNMENTS_COLLECTION, PERSISTED_CACHE_TTL),
        )
        try:
            supabase = create_supabase_client()
        except ValueError as e:
            logger.warning("Supabase not configured; link processing and drafting disabled: %s", e)
            return
        self.links = LinkProcessingService(JobStore(supabase))
        self.writing = WritingService(supabase)

    async def close(self) -> None:
        if self.canvas is not None:
            self.canvas.stop_background_refresh()
        await super().close()


bot = CheatSheetBot()


async def send_lines(ctx: commands.Context, lines: List[str]) -> None:
    for message in chunk_lines(lines):
        await ctx.send(message)


async def notify_channel(message: str) -> None:
    """Post a message to the configured notification channel, if any."""
    if not CHANNEL_ID:
        logger.info("CHANNEL_ID not configured. Skipping notification.")
        return

    try:
        channel = bot.get_channel(int(CHANNEL_ID))
    except ValueError:
        logger.warning("Invalid CHANNEL_ID: %s", CHANNEL_ID)
        return
    if channel is None:
        logger.warning("Could not find channel with ID %s", CHANNEL_ID)
        return
    await channel.send(message)


# ========================================
# Event Handlers
# ========================================

@bot.event
async def on_ready() -> None:
    """Initialize services, warm the caches and start background refresh."""
    await init_db()
    logger.info("Logged in as %s", bot.user)

    if bot.canvas is None:
        bot.build_services()

    if not bot._synced_once:
        result = await sync_canvas_data(bot.canvas)
        bot._synced_once = result.ok
        if isinstance(getattr(result, "error", None), CanvasAuthError):
            await notify_channel(RECONNECT_MESSAGE)

    if not bot.canvas.refresher.is_running():
        bot.canvas.start_background_refresh()


@bot.event
async def on_command_error(ctx: commands.Context, error: commands.CommandError) -> None:
    original = getattr(error, "original", error)
    if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
        await ctx.send(f"⚠️ {error}. See `!help {ctx.command}`.")
        return
    if isinstance(error, commands.CommandNotFound):
        return
    if not isinstance(original, (CanvasAPIError, JobError, WritingServiceError, ValueError)):
        logger.exception("Command %s failed", ctx.command, exc_info=original)
    await ctx.send(describe_error(original))


# ========================================
# Course and Assignment Commands
# ========================================

@bot.command()
async def courses(ctx: commands.Context) -> None:
    """List your active Canvas courses."""
    course_list = await bot.canvas.get_courses()
    if not course_list:
        await ctx.send("No active courses found.")
        return
    course_list = await bot.canvas.apply_nicknames(course_list)
    await send_lines(ctx, ["📖 **Your courses:**"] + format_courses(course_list))


@bot.command()
async def nickname(ctx: commands.Context, course_id: str, *, name: str = "") -> None:
    """Set a display nickname for a course. Leave the name empty to clear it."""
    course_list = await bot.canvas.get_courses()
    if not any(str(course["id"]) == course_id for course in course_list):
        await ctx.send("⚠️ Course not found.")
        return
    await bot.canvas.set_course_nickname(course_id, name)
    if name.strip():
        await ctx.send(f"🏷️ Course {course_id} will show as **{name.strip()}**.")
    else:
        await ctx.send(f"🏷️ Nickname cleared for course {course_id}.")


@bot.command()
async def assignments(ctx: commands.Context, course_id: str) -> None:
    """List published assignments for a course."""
    items = await bot.canvas.get_assignments(course_id)
    await send_lines(ctx, [f"📝 **Assignments for course {course_id}:**"] + format_assignments(items))


@bot.command()
async def thisweek(ctx: commands.Context) -> None:
    """List assignments due in the next seven days across all courses."""
    upcoming = await bot.canvas.get_upcoming_assignments()
    if not upcoming:
        await ctx.send("🎉 No assignments due in the next 7 days — you're all caught up!")
        return

    lines = ["📆 **Due in the next 7 days:**"]
    for course, assignment in upcoming:
        due = format_local(assignment["due_at"], "%a %b %d, %I:%M %p")
        label = f"{course.get('course_code')}: {course['name']}" if course.get("course_code") else course["name"]
        lines.append(f"📚 **{assignment['name']}** — *{label}* — 🕓 `{due}`")
    await send_lines(ctx, lines)


@bot.command()
async def refresh(ctx: commands.Context) -> None:
    """Clear cached Canvas data and reload it now."""
    await ctx.send("🔄 Refreshing Canvas data...")
    by_course = await bot.canvas.get_all_assignments(force_refresh=True)
    total = sum(len(items) for items in by_course.values())
    await ctx.send(f"✅ Loaded {total} assignment(s) across {len(by_course)} course(s).")


@bot.command()
async def sync(ctx: commands.Context) -> None:
    """Revalidate every cache in one pass."""
    await ctx.send("🔄 Syncing Canvas data from Canvas API...")
    result = await sync_canvas_data(bot.canvas)
    if result.ok:
        await ctx.send("✅ Sync complete!")
    elif isinstance(getattr(result, "error", None), CanvasAuthError):
        await ctx.send(RECONNECT_MESSAGE)
    else:
        await ctx.send("⚠️ Sync finished with errors; some courses may show older data.")


# ========================================
# Link Processing
# ========================================

@bot.command()
async def process(ctx: commands.Context, url: str, job_type: str = "assignment") -> None:
    """Process a linked resource remotely and show the extracted content."""
    if bot.links is None:
        await ctx.send("⚠️ Link processing is not configured.")
        return
    if job_type not in LINK_JOB_TYPES:
        await ctx.send(f"⚠️ Type must be one of: {', '.join(LINK_JOB_TYPES)}")
        return

    await ctx.send("⏳ Processing link...")
    link = await bot.links.process(url, job_type)
    await send_lines(ctx, ["✅ **Processed content:**"] + (link.content or "(empty)").splitlines())


# ========================================
# Drafting
# ========================================

@bot.command()
async def requirements(ctx: commands.Context, course_id: str, assignment_id: str) -> None:
    """Summarize what an assignment asks for."""
    if bot.writing is None:
        await ctx.send("⚠️ The writing assistant is not configured.")
        return

    assignment = find_assignment(await bot.canvas.get_assignments(course_id), assignment_id)
    if assignment is None:
        await ctx.send("⚠️ Assignment not found in that course.")
        return

    await ctx.send(f"🔍 Reading **{assignment['name']}**...")
    summary = await bot.writing.analyze_requirements(assignment.get("description") or assignment["name"])
    await send_lines(ctx, ["📋 **Requirements:**"] + summary.splitlines())


@bot.command()
async def draft(ctx: commands.Context, course_id: str, assignment_id: str) -> None:
    """Generate a first draft for an assignment."""
    if bot.writing is None:
        await ctx.send("⚠️ The writing assistant is not configured.")
        return

    assignment = find_assignment(await bot.canvas.get_assignments(course_id), assignment_id)
    if assignment is None:
        await ctx.send("⚠️ Assignment not found in that course.")
        return

    history = DraftHistory()
    await ctx.send(f"✍️ Drafting **{assignment['name']}**...")
    await bot.writing.generate_draft(assignment.get("description") or assignment["name"], history)
    bot.drafts[ctx.author.id] = (course_id, assignment_id, history)
    await send_lines(ctx, history.content.splitlines())


@bot.command()
async def improve(ctx: commands.Context) -> None:
    """Improve your current draft."""
    if bot.writing is None or ctx.author.id not in bot.drafts:
        await ctx.send("⚠️ Start a draft first with `!draft <course_id> <assignment_id>`.")
        return
    _, _, history = bot.drafts[ctx.author.id]
    await bot.writing.improve_draft(history)
    await send_lines(ctx, history.content.splitlines())


@bot.command(name="format")
async def format_draft(ctx: commands.Context) -> None:
    """Clean up the formatting of your current draft."""
    if bot.writing is None or ctx.author.id not in bot.drafts:
        await ctx.send("⚠️ Start a draft first with `!draft <course_id> <assignment_id>`.")
        return
    _, _, history = bot.drafts[ctx.author.id]
    await bot.writing.format_draft(history)
    await send_lines(ctx, history.content.splitlines())


@bot.command()
async def gradelevel(ctx: commands.Context, level: int = DEFAULT_GRADE_LEVEL) -> None:
    """Rewrite your current draft for a school grade level (1-12)."""
    if bot.writing is None or ctx.author.id not in bot.drafts:
        await ctx.send("⚠️ Start a draft first with `!draft <course_id> <assignment_id>`.")
        return
    _, _, history = bot.drafts[ctx.author.id]
    await bot.writing.adjust_grade_level(history, level)
    await send_lines(ctx, history.content.splitlines())


@bot.command()
async def undo(ctx: commands.Context) -> None:
    """Revert your draft to the previous version."""
    entry = bot.drafts.get(ctx.author.id)
    if entry is None or not entry[2].undo():
        await ctx.send("Nothing to undo.")
        return
    await ctx.send("↩️ Changes reverted.")
    await send_lines(ctx, entry[2].content.splitlines() or ["(empty draft)"])


@bot.command()
async def submit(ctx: commands.Context) -> None:
    """Submit your current draft to Canvas."""
    entry = bot.drafts.get(ctx.author.id)
    if entry is None:
        await ctx.send("⚠️ You have no draft to submit.")
        return
    course_id, assignment_id, history = entry
    await bot.canvas.submit_text(course_id, assignment_id, history.content)
    del bot.drafts[ctx.author.id]
    await ctx.send("📨 Submitted to Canvas!")


# ========================================
# Bot Entry Point
# ========================================

if __name__ == "__main__":
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    bot.run(BOT_TOKEN, log_handler=None)
