"""
AI tagging and reply generation using OpenAI API.
Used opportunistically: any failure falls back to neutral defaults and
never blocks restaurant extraction or saving.
"""
import json
import logging
from functools import lru_cache
from typing import Dict, List, Optional

from openai import AsyncOpenAI
from tenacity import retry, stop_after_attempt, wait_exponential

from core.config import settings

logger = logging.getLogger(__name__)


SENTIMENTS = ("positive", "neutral", "negative")
INTENTS = (
    "question", "complaint", "praise", "inquiry", "reservation",
    "menu", "hours", "location", "recommendation", "other"
)

DEFAULT_ANALYSIS = {"sentiment": "neutral", "intent": "other"}

FALLBACK_REPLY = (
    "I'm sorry, I'm having trouble processing your request right now. "
    "Please try again later or contact our team directly."
)

ANALYSIS_SYSTEM_PROMPT = """
You are an analysis assistant that determines sentiment and intent of messages
sent on social media about restaurants.

Output a single JSON object:
- "sentiment": one of "positive", "neutral", "negative"
- "intent": one of "question", "complaint", "praise", "inquiry", "reservation",
  "menu", "hours", "location", "recommendation", "other"

MUST output valid JSON only. NO explanation outside the JSON.
"""

REPLY_SYSTEM_PROMPT = (
    "You are a friendly assistant for {business_name}, a restaurant discovery app. "
    "Be helpful, professional, and concise. Keep responses under 200 characters when possible."
)


@lru_cache()
def get_client() -> AsyncOpenAI:
    """Shared OpenAI client, created on first use."""
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


def normalize_analysis(raw: dict) -> Dict[str, str]:
    """
    Clamp LLM output to the known sentiment/intent vocabularies.

    Args:
        raw: Parsed JSON from the model

    Returns:
        Dictionary with sentiment and intent, unknown values replaced by defaults
    """
    sentiment = str(raw.get("sentiment", "")).strip().lower()
    intent = str(raw.get("intent", "")).strip().lower()
    return {
        "sentiment": sentiment if sentiment in SENTIMENTS else DEFAULT_ANALYSIS["sentiment"],
        "intent": intent if intent in INTENTS else DEFAULT_ANALYSIS["intent"]
    }


@retry(wait=wait_exponential(min=1, max=8), stop=stop_after_attempt(3))
async def _request_analysis(text: str) -> dict:
    resp = await get_client().chat.completions.create(
        model=settings.OPENAI_MODEL,
        temperature=0.1,
        timeout=12,
        response_format={"type": "json_object"},
        messages=[
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": text},
        ],
    )
    content = resp.choices[0].message.content.strip()
    return json.loads(content)


async def analyze_message(text: str) -> Dict[str, str]:
    """
    Tag a message with sentiment and intent.

    Args:
        text: Message text

    Returns:
        {"sentiment": ..., "intent": ...}; neutral/other when the key is
        missing, the text is empty or the call fails
    """
    if not text or not text.strip() or not settings.validate_openai_key():
        return dict(DEFAULT_ANALYSIS)

    try:
        raw = await _request_analysis(text)
    except Exception as e:
        logger.warning("Message analysis failed, using defaults: %s", e)
        return dict(DEFAULT_ANALYSIS)

    if not isinstance(raw, dict):
        return dict(DEFAULT_ANALYSIS)
    return normalize_analysis(raw)


@retry(wait=wait_exponential(min=1, max=8), stop=stop_after_attempt(3))
async def _request_reply(messages: List[dict]) -> str:
    resp = await get_client().chat.completions.create(
        model=settings.OPENAI_MODEL,
        temperature=0.7,
        max_tokens=150,
        timeout=12,
        messages=messages,
    )
    return resp.choices[0].message.content.strip()


async def generate_response(
    message: str,
    business_name: str = "UniDine",
    prompt: Optional[str] = None,
    conversation_history: Optional[List[dict]] = None
) -> str:
    """
    Generate a short automated reply.

    Args:
        message: Incoming message
        business_name: Name used in the default system prompt
        prompt: Custom system prompt overriding the default
        conversation_history: Earlier messages as {"from_user": bool, "content": str}

    Returns:
        Reply text, or a fixed apology when generation is unavailable
    """
    if not settings.validate_openai_key():
        return FALLBACK_REPLY

    messages = [{"role": "system", "content": prompt or REPLY_SYSTEM_PROMPT.format(business_name=business_name)}]
    for item in conversation_history or []:
        messages.append({
            "role": "user" if item.get("from_user") else "assistant",
            "content": item.get("content", "")
        })
    messages.append({"role": "user", "content": message})

    try:
        return await _request_reply(messages)
    except Exception as e:
        logger.warning("Reply generation failed: %s", e)
        return FALLBACK_REPLY
