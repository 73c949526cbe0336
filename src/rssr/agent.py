"""LangGraph agent definition for rssr."""

import json
import logging
import sqlite3

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import SystemMessage, ToolMessage
from langgraph.checkpoint.sqlite import SqliteSaver
from langgraph.graph import END, START, MessagesState, StateGraph
from langgraph.prebuilt import tools_condition

from rssr.config import DEFAULT_MODEL
from rssr.errors import RssrError
from rssr.tools import (
    get_items,
    list_categories,
    list_feeds,
    mark_as_read,
    mark_as_unread,
    refresh_feeds,
    search_items,
    sync_state,
    toggle_bookmark,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are rssr, a helpful assistant for reading a collection of RSS and Atom feeds.

You help users:
- See their feeds, grouped by category, with unread counts and latest headlines
- Read the items of a feed, or only the unread ones
- Search items across all feeds by words in their title or summary
- Refresh feeds to fetch new items
- Mark items as read or unread
- Bookmark items they want to keep, and review their bookmarks
- Synchronize read and bookmark state with their other devices

When a user asks what feeds or categories they have, use list_feeds or list_categories.
When a user asks to see items, news, or what's new, use the get_items tool. Pass feed_url
to read one feed, and "Bookmarks" as feed_url to show bookmarked items.
When a user looks for items about a topic, use search_items.
When a user asks for fresh items, use refresh_feeds. A feed refreshed within the last five
seconds reports a cooldown; that is not a failure.
When a user wants to mark items as read or unread, use mark_as_read or mark_as_unread with
the item keys returned by get_items. mark_as_read also accepts a feed_url.
When a user wants to bookmark or unbookmark an item, use toggle_bookmark.
When a user asks to sync, use sync_state.
When the user's intent is unclear, ask a clarifying question rather than guessing.
Present feed items in a readable format: title, link, date, and a brief summary.
Be concise but informative in your responses."""

# All tools available to the agent
TOOLS = [
    list_feeds,
    list_categories,
    get_items,
    search_items,
    refresh_feeds,
    mark_as_read,
    mark_as_unread,
    toggle_bookmark,
    sync_state,
]


def run_tool_calls(tool_calls: list[dict], tools_by_name: dict) -> list[ToolMessage]:
    """Run the model's tool calls, answering each with one ToolMessage.

    rssr errors and unknown tool names go back to the model as an error
    payload, so one bad call does not end the conversation.
    """
    results = []
    for tool_call in tool_calls:
        name = tool_call["name"]
        tool = tools_by_name.get(name)
        status = "success"
        if tool is None:
            content = json.dumps({"status": "error", "message": f"Unknown tool '{name}'"})
            status = "error"
        else:
            try:
                content = str(tool.invoke(tool_call["args"]))
            except RssrError as e:
                logger.warning("Tool %s failed: %s", name, e)
                content = json.dumps({"status": "error", "message": str(e)})
                status = "error"
        results.append(
            ToolMessage(content=content, tool_call_id=tool_call["id"], name=name, status=status)
        )
    return results


def create_agent(
    checkpoint_db_path: str = "rssr_checkpoints.db",
    tools: list | None = None,
    model_name: str = DEFAULT_MODEL,
):
    """Create and compile the LangGraph agent.

    The graph alternates between the model and the feed tools until the model
    answers without tool calls. Conversation state is checkpointed in SQLite.
    """
    if tools is None:
        tools = TOOLS

    model = ChatAnthropic(model=model_name, temperature=0)
    if tools:
        model = model.bind_tools(tools)
    tools_by_name = {tool.name: tool for tool in tools}

    def call_model(state: MessagesState):
        response = model.invoke([SystemMessage(content=SYSTEM_PROMPT)] + state["messages"])
        return {"messages": [response]}

    def call_tools(state: MessagesState):
        return {"messages": run_tool_calls(state["messages"][-1].tool_calls, tools_by_name)}

    builder = StateGraph(MessagesState)
    builder.add_node("agent", call_model)
    builder.add_node("tools", call_tools)
    builder.add_edge(START, "agent")
    builder.add_conditional_edges("agent", tools_condition, ["tools", END])
    builder.add_edge("tools", "agent")

    checkpointer = SqliteSaver(sqlite3.connect(checkpoint_db_path, check_same_thread=False))
    return builder.compile(checkpointer=checkpointer)
