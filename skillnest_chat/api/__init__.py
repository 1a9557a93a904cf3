from . import chat, health, notifications, presence, websocket

ROUTERS = [
    health.router,
    chat.router,
    presence.router,
    notifications.router,
    websocket.router,
]

__all__ = ["ROUTERS"]
