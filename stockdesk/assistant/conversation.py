"""
Help conversation kept in the user session: open/closed state, current
screen and the transcript of {id, text, sender} messages.
"""
import uuid
from dataclasses import dataclass, field
from typing import List

from stockdesk.core.routes import INVENTORY_ROUTE
from .contexts import get_page_context

SESSION_KEY = 'assistant'

SENDER_USER = 'user'
SENDER_AI = 'ai'

NAVIGATION_NOTICE = "Cambiaste de pantalla. ¿En qué te ayudo aquí?"

# Quick suggestions are offered until the exchange gets going
SUGGESTION_THRESHOLD = 2


def new_message(text, sender):
    return {'id': uuid.uuid4().hex, 'text': text, 'sender': sender}


@dataclass
class Conversation:
    is_open: bool = False
    route: str = INVENTORY_ROUTE
    messages: List[dict] = field(default_factory=list)

    @property
    def context(self):
        return get_page_context(self.route)

    @property
    def show_suggestions(self):
        return len(self.messages) < SUGGESTION_THRESHOLD

    def toggle(self):
        self.is_open = not self.is_open
        return self.is_open

    def navigate(self, route):
        """Switch screen; an open, non-empty conversation gets a notice"""
        changed = route != self.route
        self.route = route
        if changed and self.is_open and self.messages:
            self.messages.append(new_message(NAVIGATION_NOTICE, SENDER_AI))
        return changed

    def add_user_message(self, text):
        message = new_message(text, SENDER_USER)
        self.messages.append(message)
        return message

    def add_reply(self, text):
        message = new_message(text, SENDER_AI)
        self.messages.append(message)
        return message

    def clear(self):
        self.messages = []

    def to_json(self):
        return {
            'is_open': self.is_open,
            'route': self.route,
            'messages': list(self.messages),
            'suggestions': list(self.context.suggestions) if self.show_suggestions else [],
        }

    @classmethod
    def from_session(cls, session):
        data = session.get(SESSION_KEY) or {}
        return cls(
            is_open=bool(data.get('is_open', False)),
            route=data.get('route') or INVENTORY_ROUTE,
            messages=list(data.get('messages') or []),
        )

    def save(self, session):
        session[SESSION_KEY] = {
            'is_open': self.is_open,
            'route': self.route,
            'messages': self.messages,
        }
