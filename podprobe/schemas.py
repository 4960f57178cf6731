"""Request bodies for the task manager and blog APIs."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

TaskCategory = Literal["Personal", "Work", "Education", "Shopping", "Health", "Other"]
TaskPriority = Literal["low", "medium", "high"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: TaskCategory = "Other"
    priority: TaskPriority = "medium"
    completed: bool = False
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)


class TaskUpdate(CamelModel):
    """Partial update; only fields present in the body are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[TaskCategory] = None
    priority: Optional[TaskPriority] = None
    completed: Optional[bool] = None
    due_date: Optional[datetime] = None
    tags: Optional[List[str]] = None

    def changes(self) -> dict:
        """Fields set by the client, without explicit nulls on required columns."""
        nullable = {"description", "due_date"}
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key in nullable
        }


class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    author: str = Field(min_length=1, max_length=100)
    published: bool = False


class PostUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    author: Optional[str] = Field(default=None, min_length=1, max_length=100)
    published: Optional[bool] = None


class CommentCreate(BaseModel):
    author: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1, max_length=500)


def describe_errors(exc: ValidationError) -> str:
    """One line summary of a pydantic validation error."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "body"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)
