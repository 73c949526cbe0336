"""Entry point for rssr: python -m rssr"""

import asyncio
import json
import logging
import uuid

from langchain_core.messages import HumanMessage

from rssr.agent import create_agent
from rssr.config import Settings, ensure_config_file, read_config
from rssr.database import Database
from rssr.errors import RssrError
from rssr.feed_list import FeedList
from rssr.poller import save_snapshot, start_polling
from rssr.tools import list_feeds, refresh_feeds, set_feed_list, sync_state

logger = logging.getLogger("rssr")

QUIT_COMMANDS = {"/quit", "/exit"}
HELP = "Commands: /feeds, /refresh, /sync, /quit. Anything else goes to the assistant."

# Slash commands run their tool directly, without a model round trip.
COMMANDS = {
    "/feeds": list_feeds,
    "/refresh": refresh_feeds,
    "/sync": sync_state,
}


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("langchain").setLevel(logging.WARNING)


def run_command(text: str) -> str | None:
    """Run a slash command and describe its outcome.

    Returns None when ``text`` is not a known command.
    """
    name = text.strip().lower()
    if name == "/help":
        return HELP
    command = COMMANDS.get(name)
    if command is None:
        return None

    payload = json.loads(command.invoke({}))
    if payload.get("status") == "error":
        return f"Error: {payload['message']}"

    if command is refresh_feeds:
        skipped = sum(1 for feed in payload["feeds"] if feed["status"] != "ok")
        return f"{payload['new_items']} new items ({skipped} feeds skipped or failed)"
    if command is sync_state:
        return f"Synced, {payload['items_updated']} items updated"
    return "\n".join(f"{feed['title']}: {feed['latest']}" for feed in payload["feeds"]) or "No feeds"


async def chat_loop(agent, config: dict) -> None:
    """Read user input until EOF or /quit, answering commands locally."""
    print(f"rssr ready! {HELP}\n")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, "You: ")).strip()
        except EOFError:
            break

        if not user_input:
            continue
        if user_input.lower() in QUIT_COMMANDS:
            break

        if user_input.startswith("/"):
            try:
                answer = await asyncio.to_thread(run_command, user_input)
            except RssrError as e:
                answer = f"Error: {e}"
            print(f"\nrssr: {answer or f'Unknown command. {HELP}'}\n")
            continue

        try:
            response = await asyncio.to_thread(
                agent.invoke,
                {"messages": [HumanMessage(content=user_input)]},
                config,
            )
        except Exception as e:
            # A tool_use without its tool_result poisons the thread; start over.
            if "tool_use" in str(e) and "tool_result" in str(e):
                config["configurable"]["thread_id"] = uuid.uuid4().hex
                logger.warning("Conversation state was inconsistent, started a new thread")
                print("\nrssr: I lost track of our conversation. Please try again.\n")
            else:
                logger.exception("Agent call failed")
                print(f"\nrssr: Sorry, I encountered an error: {e}\n")
            continue

        print(f"\nrssr: {response['messages'][-1].content}\n")


def load_feed_list(settings: Settings, db: Database) -> FeedList:
    """Build the feed list from the configuration file and latest snapshot."""
    feed_list = FeedList()

    ensure_config_file(settings.config_path)
    try:
        feed_list.load_from_configuration(read_config(settings.config_path))
    except RssrError as e:
        logger.error("Could not load %s: %s", settings.config_path, e)

    snapshot = db.latest_snapshot()
    if snapshot is not None:
        try:
            feed_list.restore(snapshot)
        except RssrError as e:
            logger.error("Could not restore snapshot: %s", e)

    return feed_list


async def main() -> None:
    """Initialize and run rssr."""
    setup_logging()
    settings = Settings.from_env()

    db = Database(settings.db_path)
    db.connect()

    feed_list = load_feed_list(settings, db)
    set_feed_list(feed_list, settings)

    agent = create_agent(checkpoint_db_path=settings.checkpoint_path, model_name=settings.model)

    # Each session gets a fresh conversation thread
    config = {"configurable": {"thread_id": uuid.uuid4().hex}}

    poller_task = asyncio.create_task(
        start_polling(feed_list, db, interval=settings.poll_interval)
    )

    try:
        await chat_loop(agent, config)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    finally:
        poller_task.cancel()
        try:
            await poller_task
        except asyncio.CancelledError:
            pass
        save_snapshot(feed_list, db)
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
