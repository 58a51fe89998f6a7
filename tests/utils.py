"""Test utilities for URL shortener tests."""

import random
import string
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from app.core.events import EventSink
from app.models.url import ShortURL


def random_string(length: int = 10) -> str:
    """Generate a random alphanumeric string."""
    return ''.join(random.choice(string.ascii_letters + string.digits) for _ in range(length))


def random_url() -> str:
    """Generate a random URL for testing."""
    domain = f"{random_string(8)}.com"
    path = random_string(12)
    return f"https://{domain}/{path}"


async def create_test_url(
    db,
    original_url: Optional[str] = None,
    short_code: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> ShortURL:
    """Create and commit a test ShortURL in the database."""
    url = ShortURL(
        original_url=original_url or random_url(),
        short_code=short_code or random_string(6),
    )
    if created_at is not None:
        url.created_at = created_at
    db.add(url)
    await db.commit()
    await db.refresh(url)
    return url


class RecordingEventSink(EventSink):
    """Event sink that records events for assertions."""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]
