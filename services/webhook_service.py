"""
Instagram webhook ingestion.

The HTTP layer verifies and acknowledges a delivery, then hands the payload
to process_webhook_events as a background job. Everything in here logs and
swallows its failures: the webhook sender has already been answered.
"""
import asyncio
import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterator, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import settings
from core.database import SessionLocal
from core.exceptions import UniDineError
from models.interaction import Interaction
from models.restaurant import RestaurantRecord
from models.user import User
from services.ai_service import analyze_message, generate_response
from services.merge_service import extract_and_maybe_save
from services.restaurant_repository import RestaurantRepository

logger = logging.getLogger(__name__)


GUIDANCE_REPLY = (
    "Thanks for your message! If you'd like to save a restaurant recommendation, "
    "please share details about a restaurant you've visited or want to try."
)
SAVED_REPLY = (
    'Thanks for sharing! I\'ve saved "{name}" to your UniDine collection. '
    "You can view and manage your saved restaurants on the UniDine app."
)

SUPPORTED_FIELDS = ("comments", "messages", "mentions")

ReplySender = Callable[[str, str], Awaitable[bool]]


@dataclass
class InstagramEvent:
    """One inbound DM, comment or mention, flattened from the webhook payload."""
    type: str
    sender_id: str
    external_id: str
    text: str
    media_id: Optional[str] = None
    media_link: Optional[str] = None
    timestamp: Optional[datetime] = None


# ==============================
# Verification
# ==============================
def verify_subscription(mode: Optional[str], token: Optional[str], challenge: Optional[str]) -> Optional[str]:
    """
    Answer the hub subscription handshake.

    Returns:
        The challenge to echo back, or None if the request must be refused
    """
    expected = settings.INSTAGRAM_WEBHOOK_VERIFY_TOKEN
    if mode == "subscribe" and expected and hmac.compare_digest(token or "", expected):
        return challenge or ""
    return None


def verify_signature(raw_body: bytes, signature_256: Optional[str], signature_sha1: Optional[str]) -> bool:
    """
    Check the X-Hub-Signature(-256) header against the raw request body.

    Args:
        raw_body: Body bytes exactly as received
        signature_256: "sha256=<hex>" header value, preferred
        signature_sha1: Legacy "sha1=<hex>" header value

    Returns:
        True only if a configured app secret produces the same digest
    """
    secret = settings.INSTAGRAM_APP_SECRET
    if not secret:
        logger.error("INSTAGRAM_APP_SECRET is not configured, rejecting webhook")
        return False

    if signature_256:
        algorithm, header = hashlib.sha256, signature_256
    elif signature_sha1:
        algorithm, header = hashlib.sha1, signature_sha1
    else:
        return False

    _, _, received = header.partition("=")
    expected = hmac.new(secret.encode("utf-8"), raw_body, algorithm).hexdigest()
    return hmac.compare_digest(received.strip().lower(), expected)


# ==============================
# Payload parsing
# ==============================
def _parse_timestamp(value) -> Optional[datetime]:
    """Webhook timestamps come as epoch seconds, epoch millis or ISO strings."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        try:
            return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if number > 1e12:
        number /= 1000.0
    return datetime.fromtimestamp(number, tz=timezone.utc)


def _message_event(value: dict) -> Optional[InstagramEvent]:
    sender = value.get("sender") or {}
    message = value.get("message") or {}
    if not sender.get("id") or not message or message.get("is_echo"):
        return None

    text = message.get("text") or ""
    media_link = None
    media_id = None
    # Shared reels/posts carry the caption and link in the attachment
    for attachment in message.get("attachments") or []:
        payload = attachment.get("payload") or {}
        media_link = media_link or payload.get("url")
        media_id = media_id or payload.get("reel_video_id")
        if not text and payload.get("title"):
            text = payload["title"]

    if not text:
        return None

    return InstagramEvent(
        type="direct_message",
        sender_id=str(sender["id"]),
        external_id=str(message.get("mid") or f"{sender['id']}:{value.get('timestamp')}"),
        text=text,
        media_id=media_id,
        media_link=media_link,
        timestamp=_parse_timestamp(value.get("timestamp"))
    )


def _comment_event(value: dict, field: str, entry_time) -> Optional[InstagramEvent]:
    author = value.get("from") or {}
    media = value.get("media") or {}
    comment_id = value.get("id") or value.get("comment_id")
    text = value.get("text") or value.get("caption") or ""
    if not author.get("id") or not comment_id or not text:
        return None

    return InstagramEvent(
        type="comment" if field == "comments" else "mention",
        sender_id=str(author["id"]),
        external_id=str(comment_id),
        text=text,
        media_id=media.get("id") or value.get("media_id"),
        media_link=media.get("permalink"),
        timestamp=_parse_timestamp(value.get("timestamp") or entry_time)
    )


def iter_events(payload: dict) -> Iterator[InstagramEvent]:
    """
    Flatten a webhook payload into events.

    Handles entry[].messaging[] (DMs) and entry[].changes[] for the
    comments, messages and mentions fields; anything else is skipped.
    """
    if not isinstance(payload, dict) or not payload.get("object"):
        logger.info("Ignoring webhook payload without an object type")
        return

    for entry in payload.get("entry") or []:
        for messaging in entry.get("messaging") or []:
            event = _message_event(messaging)
            if event:
                yield event

        for change in entry.get("changes") or []:
            field = change.get("field")
            value = change.get("value") or {}
            if field not in SUPPORTED_FIELDS:
                continue
            if field == "messages":
                event = _message_event(value)
            else:
                event = _comment_event(value, field, entry.get("time"))
            if event:
                yield event


# ==============================
# Processing
# ==============================
def _claim_event(db: Session, event: InstagramEvent) -> Optional[Interaction]:
    """
    Insert the interaction row before any work is done on the event.

    The (instagram_user_id, external_id) constraint makes the first delivery
    the owner; a redelivery, concurrent or not, gets None and does nothing.
    """
    user = db.query(User).filter(User.instagram_id == event.sender_id).first()
    if not user:
        logger.info("No UniDine user linked to Instagram id %s, skipping", event.sender_id)
        return None

    interaction = Interaction(
        user_id=user.id,
        instagram_user_id=event.sender_id,
        external_id=event.external_id,
        type=event.type,
        media_id=event.media_id,
        media_link=event.media_link,
        content=event.text,
        timestamp=event.timestamp
    )
    db.add(interaction)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Event %s from %s already processed", event.external_id, event.sender_id)
        return None
    db.refresh(interaction)
    return interaction


def _save_mention(db: Session, event: InstagramEvent, user_id: int) -> Optional[RestaurantRecord]:
    try:
        return extract_and_maybe_save(
            RestaurantRepository(db), event.text, user_id, media_link=event.media_link
        )
    except UniDineError as e:
        logger.warning("Could not save restaurant from event %s: %s", event.external_id, e)
        return None


def _finish_interaction(db: Session, interaction: Interaction, **values) -> Interaction:
    for field, value in values.items():
        setattr(interaction, field, value)
    db.commit()
    db.refresh(interaction)
    return interaction


async def handle_event(
    db: Session,
    event: InstagramEvent,
    reply_sender: Optional[ReplySender] = None
) -> Optional[Interaction]:
    """
    Process one event: claim it, tag it, try to save a restaurant, reply.

    Database work (and the Places lookup inside the merge) is blocking, so it
    runs in a worker thread; only the OpenAI and reply calls run on the loop.
    The session is used by one thread at a time.

    Args:
        db: Database session
        event: Parsed webhook event
        reply_sender: Optional coroutine (recipient_id, text) -> sent?

    Returns:
        The stored Interaction, or None if the event was skipped
    """
    interaction = await asyncio.to_thread(_claim_event, db, event)
    if interaction is None:
        return None

    analysis = await analyze_message(event.text)
    record = await asyncio.to_thread(_save_mention, db, event, interaction.user_id)

    if record is not None:
        reply = SAVED_REPLY.format(name=record.name)
    elif settings.validate_openai_key():
        reply = await generate_response(event.text)
    else:
        reply = GUIDANCE_REPLY

    responded = False
    if reply_sender is not None:
        try:
            responded = bool(await reply_sender(event.sender_id, reply))
        except Exception as e:
            logger.warning("Sending reply to %s failed: %s", event.sender_id, e)

    return await asyncio.to_thread(
        _finish_interaction, db, interaction,
        sentiment=analysis["sentiment"],
        intent=analysis["intent"],
        restaurant_id=record.id if record is not None else None,
        responded=responded,
        response_text=reply
    )


async def process_webhook_events(
    payload: dict,
    session_factory: Callable[[], Session] = SessionLocal,
    reply_sender: Optional[ReplySender] = None
) -> List[Interaction]:
    """
    Background job for one webhook delivery.

    Each event is processed on its own; a failing event is logged and the
    rest of the delivery still runs. A failed event keeps its claimed
    interaction row, so a redelivery will not process it again.

    Returns:
        Interactions stored for this delivery
    """
    stored: List[Interaction] = []
    db = session_factory()
    try:
        for event in iter_events(payload):
            try:
                interaction = await handle_event(db, event, reply_sender)
            except Exception:
                await asyncio.to_thread(db.rollback)
                logger.exception("Error processing %s event %s", event.type, event.external_id)
                continue
            if interaction is not None:
                stored.append(interaction)
    except Exception:
        logger.exception("Error processing webhook delivery")
    finally:
        await asyncio.to_thread(db.close)

    logger.info("Webhook delivery processed, %d interaction(s) stored", len(stored))
    return stored
