from fastapi import Request

from app.db.session import SessionLocal
from app.core.redis import KeyValueStore
from app.services.notifications import NotificationEmitter


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_notifier(request: Request) -> NotificationEmitter:
    return request.app.state.notifier
