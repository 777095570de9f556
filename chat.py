# chat.py
from typing import List, Optional

from database import Store
from errors import ValidationError
from models import Message
from utils import sanitize_input, utcnow


def get_thread(store: Store, a: int, b: int) -> List[Message]:
    """Messages exchanged between a and b, in either direction, oldest first."""
    return [
        m for m in store.load().messages
        if (m.sender == a and m.recipient == b) or (m.sender == b and m.recipient == a)
    ]


def post_message(store: Store, sender: Optional[int], recipient: Optional[int], text: Optional[str]) -> Message:
    text = sanitize_input(text)
    if sender is None or recipient is None or not text:
        raise ValidationError("Missing fields")

    db = store.load()
    message = Message(sender=sender, recipient=recipient, text=text, timestamp=utcnow())
    db.messages.append(message)
    store.save(db)
    return message
