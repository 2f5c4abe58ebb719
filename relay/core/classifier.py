"""Item classifier: one raw Instagram DM item -> one RenderableMessage.

Pure and total. Each ItemType has its own render function; anything we don't
recognise gets a generic "Message type: ..." rendering instead of an error.
"""

import logging

from relay.core.models import (
    RECEIVED_COLOR,
    SENT_COLOR,
    ItemType,
    RenderableMessage,
)
from relay.core.timestamps import resolve_timestamp, timestamp_field

logger = logging.getLogger(__name__)

INSTAGRAM = "https://www.instagram.com"
CAPTION_LIMIT = 100
DEFAULT_OWNER = "Instagram User"

# Instagram shows this instead of vanishing-mode content to older/third-party clients
VANISHING_TITLE = "Use Latest App"
VANISHING_MESSAGE = "Use the latest version of the Instagram app"


def classify(item, username, pending=False):
    """Render a raw item sent by/to `username`.

    Never raises for a well-formed item dict. `degraded` on the result is True
    when extraction failed and a minimal rendering was substituted.
    """
    sent = item.get("is_sent_by_viewer") is True
    kind = ItemType.of(item)
    render = _RENDERERS.get(kind, _render_other)

    title, body, image_url, degraded = render(item, username, sent)

    suffix = " (Pending)" if pending else ""
    footer = "Sent via Instagram DM" if sent else "Received via Instagram DM"
    message = RenderableMessage(
        title=title + suffix,
        body=body,
        color=SENT_COLOR if sent else RECEIVED_COLOR,
        footer=footer + suffix,
        image_url=image_url or None,
        timestamp=resolve_timestamp(item.get("timestamp")),
        item_type=kind,
        degraded=degraded,
    )
    message.add_field(*timestamp_field(item.get("timestamp"), sent))
    return message


# ── helpers ──────────────────────────────────────────────────


def _first_candidate_url(media):
    candidates = ((media or {}).get("image_versions2") or {}).get("candidates") or []
    if candidates:
        return candidates[0].get("url") or ""
    return ""


def _owner(media):
    return ((media or {}).get("user") or {}).get("username") or ""


def _caption(media):
    return ((media or {}).get("caption") or {}).get("text") or ""


def _quote_caption(text):
    if len(text) > CAPTION_LIMIT:
        text = text[:CAPTION_LIMIT] + "..."
    return f'\n\n*"{text}"*'


def _item_id_prefix(item):
    return str(item.get("item_id") or "").split("_")[0]


def _resolve_post_link(item, media):
    """Permalink for a post, or a plain 'Media content (ID: ...)' marker."""
    media = media or {}
    if media.get("code"):
        return f"{INSTAGRAM}/p/{media['code']}/", True
    if media.get("id"):
        return f"{INSTAGRAM}/p/{media['id']}/", True
    media_id = _item_id_prefix(item)
    if media_id:
        return f"Media content (ID: {media_id})", False
    return "", False


def _post_body(item, media, link, is_url, empty_text):
    body = item.get("text") or empty_text
    caption = _caption(media)
    if caption:
        body += _quote_caption(caption)
    if link:
        body += f"\n\n[View on Instagram]({link})" if is_url else f"\n\n{link}"
    return body


# ── renderers: (item, username, sent) -> (title, body, image_url, degraded) ──


def _render_text(item, username, sent):
    direction = "You to" if sent else "From"
    return f"{direction} {username}", item.get("text") or "(No text)", None, False


def _render_media_share(item, username, sent):
    media = item.get("media_share") or {}
    owner = _owner(media)
    link, is_url = _resolve_post_link(item, media)

    direction = "You shared with" if sent else "Shared by"
    label = f"Post from @{owner}" if owner else "Shared Post"
    body = _post_body(item, media, link, is_url, "(No message)")
    return f"{direction} {username}: {label}", body, _first_candidate_url(media), False


def _render_media(item, username, sent):
    media = (item.get("visual_media") or {}).get("media") or {}
    owner = _owner(media)
    link, is_url = _resolve_post_link(item, media)

    direction = "You sent to" if sent else "From"
    label = f"Photo/Video from @{owner}" if owner else "Photo/Video"
    body = _post_body(item, media, link, is_url, "(No caption)")
    return f"{direction} {username}: {label}", body, _first_candidate_url(media), False


def _clip_link(item):
    """Reel link via the nested clip first, then the looser fallbacks."""
    clip = item.get("clip") or {}
    nested = clip.get("clip")
    if nested:
        code = nested.get("code")
    elif clip.get("code"):
        code = clip["code"]
    elif item.get("media_id"):
        code = item["media_id"]
    else:
        code = _item_id_prefix(item)
    return f"{INSTAGRAM}/reel/{code}/" if code else ""


def _render_clip(item, username, sent):
    direction = "You shared with" if sent else "Shared by"
    try:
        nested = (item.get("clip") or {}).get("clip") or {}
        owner = _owner(nested) or DEFAULT_OWNER
        caption = _caption(nested)
        thumbnail = _first_candidate_url(nested)
        link = _clip_link(item)

        text = item.get("text")
        body = text or "(No message)"
        if caption and caption != text:
            body += _quote_caption(caption)
        if link:
            body += f"\n\n[Watch on Instagram]({link})"
        else:
            body += "\n\n(Could not extract Instagram link)"
    except Exception as e:
        logger.warning(f"[classifier] error processing clip {item.get('item_id')}: {e}")
        return (
            f"{direction} {username}: Instagram Reel",
            "Error processing Instagram reel",
            None,
            True,
        )
    return f"{direction} {username}: Instagram Reel from @{owner}", body, thumbnail, False


def _render_story_share(item, username, sent):
    direction = "You shared with" if sent else "Shared by"
    media = (item.get("story_share") or {}).get("media")
    body = item.get("text") or ""
    if not media:
        return f"{direction} {username}: Instagram Story", body or "(No message)", None, False

    owner = _owner(media) or DEFAULT_OWNER
    body += (
        f"\n\nShared a story from @{owner}\n"
        f"[View Profile]({INSTAGRAM}/{owner}/) | [View Stories]({INSTAGRAM}/stories/{owner}/)"
    )
    title = f"{direction} {username}: Instagram Story from @{owner}"
    return title, body.strip(), _first_candidate_url(media), False


def is_vanishing(item):
    if item.get("is_disappearing") is True:
        return True
    placeholder = item.get("placeholder") or {}
    return (
        placeholder.get("title") == VANISHING_TITLE
        and VANISHING_MESSAGE in (placeholder.get("message") or "")
    )


def _render_placeholder(item, username, sent):
    direction = "You sent to" if sent else "From"
    if is_vanishing(item):
        return (
            f"{direction} {username}: Vanishing Mode Message",
            "This message was sent in vanishing mode. Instagram doesn't allow "
            "third-party apps to see the content of vanishing messages.",
            None,
            False,
        )
    return (
        f"{direction} {username}: Placeholder Message",
        "This message is still loading in Instagram. It may contain media or "
        "other content that will appear soon.",
        None,
        False,
    )


def _render_activity(item, username, sent):
    tag = item.get("item_type")
    who = "You" if sent else username
    return f"{who} sent an activity: {tag}", f"Activity type: {tag}", None, False


def _render_other(item, username, sent):
    direction = "You to" if sent else "From"
    return f"{direction} {username}", f"Message type: {item.get('item_type')}", None, False


_RENDERERS = {
    ItemType.TEXT: _render_text,
    ItemType.MEDIA_SHARE: _render_media_share,
    ItemType.MEDIA: _render_media,
    ItemType.CLIP: _render_clip,
    ItemType.STORY_SHARE: _render_story_share,
    ItemType.PLACEHOLDER: _render_placeholder,
    ItemType.LIKE: _render_activity,
    ItemType.ACTION_LOG: _render_activity,
    ItemType.OTHER: _render_other,
}
