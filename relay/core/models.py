from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

SENT_COLOR = "#2196F3"      # blue
RECEIVED_COLOR = "#E1306C"  # instagram pink

TITLE_LIMIT = 256
BODY_LIMIT = 4096


class ItemType(str, Enum):
    TEXT = "text"
    MEDIA_SHARE = "media_share"
    CLIP = "clip"
    MEDIA = "media"
    STORY_SHARE = "story_share"
    LIKE = "like"
    ACTION_LOG = "action_log"
    PLACEHOLDER = "placeholder"
    OTHER = "other"

    @classmethod
    def of(cls, item):
        """Map a raw item to its variant. Unknown tags become OTHER."""
        tag = item.get("item_type")
        try:
            kind = cls(tag)
        except ValueError:
            kind = cls.OTHER
        # stories arrive under loose tags; the payload is what counts
        if kind not in _CONTENT_TYPES and item.get("story_share"):
            return cls.STORY_SHARE
        return kind


_CONTENT_TYPES = {
    ItemType.TEXT,
    ItemType.MEDIA_SHARE,
    ItemType.CLIP,
    ItemType.MEDIA,
    ItemType.PLACEHOLDER,
}


@dataclass(frozen=True)
class Thread:
    thread_id: str
    usernames: Tuple[str, ...]
    pending: bool = False

    @classmethod
    def from_raw(cls, raw, pending=False):
        users = raw.get("users") or []
        names = tuple(u.get("username") for u in users if u.get("username"))
        return cls(thread_id=str(raw.get("thread_id")), usernames=names, pending=pending)

    @property
    def primary_username(self):
        return self.usernames[0] if self.usernames else "unknown_user"

    @property
    def category(self):
        return "pending" if self.pending else "accepted"


@dataclass
class RenderableMessage:
    title: str
    body: str
    color: str = RECEIVED_COLOR
    footer: str = ""
    image_url: Optional[str] = None
    fields: List[Tuple[str, str]] = field(default_factory=list)
    timestamp: Optional[datetime] = None
    item_type: ItemType = ItemType.OTHER
    degraded: bool = False

    def __post_init__(self):
        self.title = _clip_text(self.title, TITLE_LIMIT)
        self.body = _clip_text(self.body, BODY_LIMIT)

    def add_field(self, name, value):
        self.fields.append((name, value))


def _clip_text(text, limit):
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
