# campus_guide/llm.py
import json
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncAzureOpenAI

from .campus import find_location
from .config import Settings
from .schemas import CampusEvent, HistoryMessage

logger = logging.getLogger(__name__)

NO_CLIENT_TEXT = (
    "No API key configured. Please set AZURE_OPENAI_ENDPOINT and "
    "AZURE_OPENAI_API_KEY in your environment."
)
EMPTY_REPLY_TEXT = "I'm having trouble generating a response right now. (Empty Response)"
ERROR_REPLY_TEXT = "Connection Error. Please try again in a moment."


def create_llm_client(settings: Settings) -> Optional[AsyncAzureOpenAI]:
    """Azure OpenAI client, or None when credentials are missing."""
    if not settings.llm_configured:
        logger.warning("Azure OpenAI config not set; AI replies are disabled.")
        return None

    return AsyncAzureOpenAI(
        azure_endpoint=settings.azure_endpoint,
        api_key=settings.azure_api_key,
        api_version=settings.azure_api_version,
    )


# -------------------------------------------------------------------
#  Tools
# -------------------------------------------------------------------
DISPLAY_MAP_TOOL = {
    "type": "function",
    "function": {
        "name": "display_map",
        "description": "Display an interactive map of a specific campus location.",
        "parameters": {
            "type": "object",
            "properties": {
                "location_name": {
                    "type": "string",
                    "description": "The name of the location to find on the map.",
                }
            },
            "required": ["location_name"],
        },
    },
}


# -------------------------------------------------------------------
#  SYSTEM PROMPT – who is the guide and how should it behave
# -------------------------------------------------------------------
def build_system_prompt(university: Dict[str, Any], user_context: str) -> str:
    data_context = json.dumps(
        {
            "name": university.get("name"),
            "locations": university.get("locations", []),
            "faq": university.get("faq", []),
        },
        indent=2,
        ensure_ascii=False,
    )

    return f"""
You are {university.get("persona_name")}, an orientation leader and upper-year student guide
for {university.get("name")}.

CORE ASSUMPTION: The user does not know building names, shortcuts, or campus culture.

YOUR GOAL: Explain what it is, where it is, why to go there, how to get there, and when it's best.

RESPONSE TEMPLATE (STRICTLY FOLLOW THIS):
1. One-sentence clear answer
2. Detailed breakdown:
   - What it is (plain language)
   - Where it is (landmarks, nearby buildings)
   - Why people use it
   - Best time to go
3. Helpful tip (access, hours, noise, food)
4. Offer a next action (map, directions, save, reminder)

When the student asks where something is, call the display_map tool with the
location name so the app can show a map.

DATA CONTEXT:
{data_context}

USER CONTEXT:
{user_context}

STYLE GUIDE:
{university.get("style_guide", "")}

Always format nicely with Markdown. Use bolding for key terms.
""".strip()


def _history_messages(history: List[HistoryMessage], limit: int) -> List[Dict[str, str]]:
    recent = history[-limit:] if limit > 0 else []
    return [
        {
            "role": "user" if m.sender == "user" else "assistant",
            "content": m.text,
        }
        for m in recent
    ]


# -------------------------------------------------------------------
#  Chat completion wrapper
# -------------------------------------------------------------------
async def generate_response(
    client: Optional[AsyncAzureOpenAI],
    deployment: str,
    university: Dict[str, Any],
    user_message: str,
    history: List[HistoryMessage],
    user_context: str,
    history_limit: int = 5,
) -> Dict[str, Any]:
    """
    Ask the model for a reply as the university's persona.

    Returns {"text": str, "map_location": MapLocation | None}. Failures are
    logged and turned into a short apology text; this never raises.
    """
    if client is None:
        return {"text": NO_CLIENT_TEXT, "map_location": None}

    messages: List[Dict[str, Any]] = [
        {"role": "system", "content": build_system_prompt(university, user_context)},
        *_history_messages(history, history_limit),
        {"role": "user", "content": user_message},
    ]

    map_location = None
    try:
        resp = await client.chat.completions.create(
            model=deployment,
            messages=messages,
            tools=[DISPLAY_MAP_TOOL],
        )
        message = resp.choices[0].message
        text = message.content or ""

        tool_calls = message.tool_calls or []
        if tool_calls and tool_calls[0].function.name == "display_map":
            call = tool_calls[0]
            try:
                args = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError:
                args = {}

            map_location = find_location(university, args.get("location_name", ""))
            result = (
                f"Found: {map_location.name}" if map_location else "Location not found."
            )

            messages.append(
                {
                    "role": "assistant",
                    "content": message.content,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.function.name,
                                "arguments": call.function.arguments,
                            },
                        }
                    ],
                }
            )
            messages.append(
                {
                    "role": "tool",
                    "tool_call_id": call.id,
                    "content": json.dumps({"result": result}),
                }
            )

            resp = await client.chat.completions.create(
                model=deployment,
                messages=messages,
            )
            text = resp.choices[0].message.content or text
    except Exception as e:
        logger.exception("Chat completion failed: %s", e)
        return {"text": ERROR_REPLY_TEXT, "map_location": None}

    return {"text": text or EMPTY_REPLY_TEXT, "map_location": map_location}


# -------------------------------------------------------------------
#  Weekly campus events briefing
# -------------------------------------------------------------------
NO_CLIENT_EVENTS_TEXT = "Unable to generate summary: API Key missing."
EVENTS_FALLBACK_TEXT = "Check out the events below!"
EMPTY_EVENTS_TEXT = "No summary generated."


async def generate_event_summary(
    client: Optional[AsyncAzureOpenAI],
    deployment: str,
    university: Dict[str, Any],
    events: List[CampusEvent],
) -> str:
    """
    Short "Campus Pulse" briefing of upcoming events in the persona's voice.

    Like generate_response, failures are logged and replaced by a fixed
    text so the client can still list the events themselves.
    """
    if client is None:
        return NO_CLIENT_EVENTS_TEXT

    event_lines = "\n".join(
        f"- {e.title} ({e.date}): {e.description}" for e in events
    )
    prompt = f"""
You are {university.get("persona_name")}, an enthusiastic guide for {university.get("name")}.

Task: Write a brief, exciting weekly briefing summarizing these campus events for a student.

Events List:
{event_lines}

Style Guide: {university.get("style_guide", "")}

Format:
## 📅 Campus Pulse
[1 paragraph summary of vibes]

🔥 Highlights
- [Event 1]
- [Event 2]

Keep it under 150 words.
""".strip()

    try:
        resp = await client.chat.completions.create(
            model=deployment,
            messages=[{"role": "user", "content": prompt}],
        )
        text = resp.choices[0].message.content or ""
    except Exception as e:
        logger.exception("Event summary failed: %s", e)
        return EVENTS_FALLBACK_TEXT

    return text or EMPTY_EVENTS_TEXT
