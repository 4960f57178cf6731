"""
Blog posts and comments on the sync SQLAlchemy session.

Handlers are plain ``def`` functions, so Starlette runs them in its threadpool
and the blocking database calls never stall the event loop. The published
listing is cached per replica and forgotten on every write.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from podprobe.cache import ResponseCache
from podprobe.db import CommentDB, PostDB, get_sync_db_session
from podprobe.identity import InstanceIdentity, get_identity, utcnow
from podprobe.schemas import CommentCreate, PostCreate, PostUpdate

logger = structlog.get_logger(__name__)

# Router configuration
post_router = APIRouter(prefix="/api/posts", tags=["Posts"])

POSTS_CACHE_KEY = "posts.all"


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.cache


Cache = Annotated[ResponseCache, Depends(get_cache)]
Identity = Annotated[InstanceIdentity, Depends(get_identity)]


def _iso(value):
    return value.isoformat() if value else None


def comment_to_dict(comment: CommentDB) -> dict:
    return {
        "id": comment.id,
        "postId": comment.post_id,
        "author": comment.author,
        "content": comment.content,
        "createdAt": _iso(comment.created_at),
        "updatedAt": _iso(comment.updated_at),
    }


def post_to_dict(post: PostDB, with_comments: bool = True) -> dict:
    data = {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "author": post.author,
        "published": post.published,
        "publishedAt": _iso(post.published_at),
        "createdAt": _iso(post.created_at),
        "updatedAt": _iso(post.updated_at),
    }
    if with_comments:
        data["comments"] = [comment_to_dict(c) for c in post.comments]
    return data


def post_not_found() -> JSONResponse:
    return JSONResponse({"success": False, "message": "Post not found"}, status_code=404)


def load_published_posts() -> list:
    with get_sync_db_session() as session:
        posts = session.execute(
            select(PostDB)
            .options(selectinload(PostDB.comments))
            .where(PostDB.published.is_(True))
            .order_by(PostDB.created_at.desc(), PostDB.id.desc())
        ).scalars().all()
        return [post_to_dict(p) for p in posts]


@post_router.get("")
def list_posts(request: Request, cache: Cache, identity: Identity) -> dict:
    """Published posts with their comments, newest first."""
    logger.info("Fetching all posts", pod=identity.pod_name, ip=request.client.host if request.client else None)
    posts = cache.remember(POSTS_CACHE_KEY, load_published_posts)
    return {"success": True, "count": len(posts), "pod": identity.pod_name, "data": posts}


@post_router.get("/{post_id}")
def get_post(post_id: int, identity: Identity):
    logger.info("Fetching post", post_id=post_id, pod=identity.pod_name)
    with get_sync_db_session() as session:
        post = session.get(PostDB, post_id, options=[selectinload(PostDB.comments)])
        if post is None:
            return post_not_found()
        return {"success": True, "pod": identity.pod_name, "data": post_to_dict(post)}


@post_router.post("", status_code=201)
def create_post(fields: PostCreate, cache: Cache, identity: Identity):
    logger.info("Creating post", title=fields.title, pod=identity.pod_name)
    with get_sync_db_session() as session:
        post = PostDB(
            title=fields.title,
            content=fields.content,
            author=fields.author,
            published=fields.published,
            published_at=utcnow() if fields.published else None,
        )
        session.add(post)
        session.commit()
        data = post_to_dict(post, with_comments=False)
        data["comments"] = []

    cache.forget(POSTS_CACHE_KEY)
    return JSONResponse(
        {"success": True, "pod": identity.pod_name, "message": "Post created successfully", "data": data},
        status_code=201,
    )


@post_router.put("/{post_id}")
def update_post(post_id: int, fields: PostUpdate, cache: Cache, identity: Identity):
    with get_sync_db_session() as session:
        post = session.get(PostDB, post_id)
        if post is None:
            return post_not_found()

        logger.info("Updating post", post_id=post_id, pod=identity.pod_name)
        changes = {key: value for key, value in fields.model_dump(exclude_unset=True).items() if value is not None}
        for key, value in changes.items():
            setattr(post, key, value)
        if post.published and post.published_at is None:
            post.published_at = utcnow()
        post.updated_at = utcnow()
        session.commit()
        session.refresh(post)
        data = post_to_dict(post)

    cache.forget(POSTS_CACHE_KEY)
    return {"success": True, "pod": identity.pod_name, "message": "Post updated successfully", "data": data}


@post_router.delete("/{post_id}")
def delete_post(post_id: int, cache: Cache, identity: Identity):
    with get_sync_db_session() as session:
        post = session.get(PostDB, post_id)
        if post is None:
            return post_not_found()

        logger.info("Deleting post", post_id=post_id, pod=identity.pod_name)
        session.delete(post)
        session.commit()

    cache.forget(POSTS_CACHE_KEY)
    return {"success": True, "pod": identity.pod_name, "message": "Post deleted successfully"}


@post_router.get("/{post_id}/comments")
def list_comments(post_id: int, identity: Identity):
    with get_sync_db_session() as session:
        post = session.get(PostDB, post_id)
        if post is None:
            return post_not_found()

        logger.info("Fetching comments", post_id=post_id, pod=identity.pod_name)
        comments = session.execute(
            select(CommentDB)
            .where(CommentDB.post_id == post_id)
            .order_by(CommentDB.created_at.desc(), CommentDB.id.desc())
        ).scalars().all()
        return {
            "success": True,
            "count": len(comments),
            "pod": identity.pod_name,
            "data": [comment_to_dict(c) for c in comments],
        }


@post_router.post("/{post_id}/comments", status_code=201)
def create_comment(post_id: int, fields: CommentCreate, cache: Cache, identity: Identity):
    with get_sync_db_session() as session:
        post = session.get(PostDB, post_id)
        if post is None:
            return post_not_found()

        logger.info("Creating comment", post_id=post_id, pod=identity.pod_name)
        comment = CommentDB(post_id=post_id, author=fields.author, content=fields.content)
        session.add(comment)
        session.commit()
        data = comment_to_dict(comment)

    cache.forget(POSTS_CACHE_KEY)
    return JSONResponse(
        {"success": True, "pod": identity.pod_name, "message": "Comment added successfully", "data": data},
        status_code=201,
    )
