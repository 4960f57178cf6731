"""Sample blog content for a fresh database."""

from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from podprobe.identity import utcnow

from .schema import CommentDB, PostDB

SAMPLE_POSTS = [
    {
        "title": "Getting Started with Kubernetes",
        "content": (
            "Kubernetes is a powerful container orchestration platform that automates deployment, "
            "scaling, and management of containerized applications. In this guide, we will explore "
            "the fundamentals of Kubernetes and how it can transform your DevOps practices."
        ),
        "author": "DevOps Engineer",
        "age_days": 0,
        "comments": [
            ("John Doe", "Great article! Very informative and well-written."),
            ("Jane Smith", "Thanks for sharing this. Helped me understand Kubernetes better."),
        ],
    },
    {
        "title": "FastAPI Best Practices",
        "content": (
            "FastAPI provides type-driven request validation and dependency injection for modern "
            "Python services. Learn about routers, dependencies, middleware, and more in this guide."
        ),
        "author": "Python Developer",
        "age_days": 1,
        "comments": [
            ("Bob Wilson", "FastAPI is amazing! These tips are very useful."),
        ],
    },
    {
        "title": "Microservices Architecture",
        "content": (
            "Microservices architecture is a design approach where applications are built as a "
            "collection of small, independent services. Each service runs in its own process and "
            "communicates through well-defined APIs."
        ),
        "author": "Solution Architect",
        "age_days": 2,
        "comments": [],
    },
]


def seed_posts(session: Session) -> dict:
    """Insert the sample posts and comments if the posts table is empty."""
    if session.execute(select(PostDB.id).limit(1)).first() is not None:
        return {"posts": 0, "comments": 0}

    now = utcnow()
    comments = 0
    for sample in SAMPLE_POSTS:
        published_at = now - timedelta(days=sample["age_days"])
        post = PostDB(
            title=sample["title"],
            content=sample["content"],
            author=sample["author"],
            published=True,
            published_at=published_at,
            created_at=published_at,
            updated_at=published_at,
        )
        for author, content in sample["comments"]:
            post.comments.append(CommentDB(author=author, content=content))
            comments += 1
        session.add(post)
    session.commit()
    return {"posts": len(SAMPLE_POSTS), "comments": comments}
