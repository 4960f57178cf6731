"""Database package for the workshop APIs."""

from .engine import dispose_engines, get_async_db_session, get_sync_db_session, init_models, ping, sync_engine
from .schema import CommentDB, PostDB, TaskDB
from .seed import seed_posts

__all__ = [
    "dispose_engines",
    "get_async_db_session",
    "get_sync_db_session",
    "init_models",
    "ping",
    "sync_engine",
    "CommentDB",
    "PostDB",
    "TaskDB",
    "seed_posts",
]
