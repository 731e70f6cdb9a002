"""Имена событий протокола и роли при завершении разговора."""
from typing import Literal

# Входящие (клиент -> сервер)
EVENT_NEW_PARTNER = "new_partner"
EVENT_END_SESSION = "end_session"
EVENT_CHAT = "chat"
EVENT_TYPING = "typing"

# Исходящие (сервер -> клиент)
EVENT_PAIRED = "paired"
EVENT_SESSION_ENDED = "session_ended"
EVENT_PRESENCE_STATS = "presence_stats"

Role = Literal["self", "partner"]

ROLE_SELF: Role = "self"
ROLE_PARTNER: Role = "partner"

# Код закрытия сокета при конфликте id соединения
CLOSE_DUPLICATE_ID = 4000
