"""
In-memory wizard sessions.

One WizardState per chat. Sessions live for the process lifetime only;
concurrent updates from the same chat are last-write-wins.
"""

from typing import Dict, Optional

from core.models import WizardState


class SessionStore:
    """Per-chat wizard state storage."""

    def __init__(self):
        self._states: Dict[int, WizardState] = {}

    def get(self, chat_id: int) -> Optional[WizardState]:
        return self._states.get(chat_id)

    def set(self, chat_id: int, state: WizardState):
        self._states[chat_id] = state

    def clear(self, chat_id: int):
        self._states.pop(chat_id, None)
