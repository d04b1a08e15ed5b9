from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from google import genai
from google.genai import errors as genai_errors

from retail.config import Settings
from retail.store import RetailStore

logger = logging.getLogger(__name__)

FLASH_MODEL = "gemini-2.5-flash"
TONES = ("Professional", "Casual", "Concise", "Detailed")

FALLBACK_TEXT = (
    "Sorry, I encountered an error processing your request. "
    "Please try again or disable external tools (Search/Maps)."
)
NO_KEY_TEXT = "The assistant is not configured. Set GEMINI_API_KEY to enable it."
EMPTY_TEXT = "I didn't understand that."
MAPS_NOTE = "\n\n(Note: Google Maps integration is temporarily unavailable with this model.)"


@dataclass
class ChatReply:
    text: str
    grounding: list = field(default_factory=list)


def build_context(store: RetailStore, page: str = "Dashboard") -> str:
    total_gst = sum(float(s.total_tax) for s in store.sales)
    total_revenue = sum(float(s.total_amount) for s in store.sales)
    low_stock = [p.name for p in store.products if p.total_stock() <= p.min_stock_level]
    top_loyal = sorted(store.customers, key=lambda c: c.loyalty_points, reverse=True)[:3]

    return "\n".join(
        [
            f"Current Page: {page}",
            f"Active Locations: {', '.join(l.name for l in store.locations)}.",
            f"Total Revenue: ₹{total_revenue:,.2f} across {len(store.sales)} sales.",
            f"Total GST Collected: ₹{total_gst:,.2f}.",
            f"Low Stock Items: {', '.join(low_stock) or 'None'}.",
            f"Customers: {len(store.customers)}. Top loyalty: "
            + (", ".join(f"{c.name} ({c.loyalty_points} pts)" for c in top_loyal) or "None")
            + ".",
            f"Sales Targets: {len(store.sales_targets)} configured.",
        ]
    )


def build_prompt(message: str, context: str, *, business_name: str, tone: str) -> str:
    return f"""
You are the AI Assistant for '{business_name}', an inventory management system.

Tone: {tone}

Context Data (Current System State & Page):
{context}

User Query:
{message}

Answer helpful, concise, and professional based on the requested tone.
- If the user asks about market trends or external info, use Google Search (if enabled).
- If they ask about locations, use Google Maps (if enabled).
- If they ask about GST, analyze the taxes context provided.
- If they ask about customers, refer to the loyalty and history context.
""".strip()


def _tools(use_search: bool, use_maps: bool) -> Optional[list[dict]]:
    tool: dict[str, dict] = {}
    if use_search:
        tool["google_search"] = {}
    if use_maps:
        tool["google_maps"] = {}
    return [tool] if tool else None


def _grounding(response: Any) -> list:
    try:
        meta = response.candidates[0].grounding_metadata
        return list(meta.grounding_chunks or []) if meta else []
    except (AttributeError, IndexError, TypeError):
        return []


def _generate(client: Any, *, model: str, prompt: str, tools: Optional[list[dict]]) -> Any:
    config = {"tools": tools} if tools else None
    return client.models.generate_content(model=model, contents=prompt, config=config)


def _tool_not_supported(err: genai_errors.APIError) -> bool:
    return getattr(err, "code", None) == 400 or "not enabled for this model" in str(err)


def chat_with_agent(
    message: str,
    context: str,
    *,
    settings: Settings,
    use_search: bool = False,
    use_maps: bool = False,
    model: Optional[str] = None,
    tone: str = "Professional",
    client: Any = None,
) -> ChatReply:
    """
    Forward a chat message plus a state summary to Gemini.

    External failures never reach the page: they are logged and replaced
    with a fallback reply. When a tool request is rejected and Maps was on,
    one retry is made with Maps stripped.
    """
    if client is None:
        if not settings.gemini_api_key:
            return ChatReply(text=NO_KEY_TEXT)
        client = genai.Client(
            api_key=settings.gemini_api_key,
            # Timeout is in milliseconds.
            http_options={"timeout": int(settings.assistant_timeout_seconds) * 1000},
        )

    tools = _tools(use_search, use_maps)
    # Tool use is only reliable on the Flash model.
    effective_model = FLASH_MODEL if tools else (model or settings.assistant_model)
    prompt = build_prompt(message, context, business_name=settings.business_name, tone=tone)

    try:
        response = _generate(client, model=effective_model, prompt=prompt, tools=tools)
        return ChatReply(text=getattr(response, "text", None) or EMPTY_TEXT, grounding=_grounding(response))
    except genai_errors.APIError as err:
        logger.error("Chat request failed: %s", err, exc_info=True)
        if use_maps and _tool_not_supported(err):
            logger.warning("Retrying chat without Google Maps")
            try:
                response = _generate(client, model=effective_model, prompt=prompt, tools=_tools(use_search, False))
                return ChatReply(
                    text=(getattr(response, "text", None) or "") + MAPS_NOTE,
                    grounding=_grounding(response),
                )
            except Exception:
                logger.exception("Chat retry without Maps failed")
    except Exception:
        logger.exception("Chat request failed")

    return ChatReply(text=FALLBACK_TEXT)
