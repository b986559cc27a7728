"""
Lifecycle states for posts, media and comments.

The transition rules are the same for every dialect:
- nothing may ever move back to New
- every other move is legal, so an object may be operated on again
  whatever its last outcome was
"""

from enum import Enum
from typing import Union


class PostStatus(Enum):
    """Lifecycle of a BlogPost."""

    NEW = "new"
    FETCHED = "fetched"
    CREATED = "created"
    MODIFIED = "modified"
    REMOVED = "removed"
    ERROR = "error"


class MediaStatus(Enum):
    """Lifecycle of a BlogMedia."""

    NEW = "new"
    CREATED = "created"
    ERROR = "error"


class CommentStatus(Enum):
    """Lifecycle of a BlogComment."""

    NEW = "new"
    FETCHED = "fetched"
    CREATED = "created"
    REMOVED = "removed"
    ERROR = "error"


Status = Union[PostStatus, MediaStatus, CommentStatus]


class InvalidStatusTransition(ValueError):
    """Raised when an object is moved along a transition the table forbids."""

    def __init__(self, current: Status, requested: Status):
        super().__init__(
            f"Illegal status transition {current.name} -> {requested.name}"
        )
        self.current = current
        self.requested = requested


def is_valid_transition(current: Status, requested: Status) -> bool:
    """
    Check a transition against the lifecycle table.

    Args:
        current: The state the object is in
        requested: The state it should move to

    Returns:
        True if the move is legal
    """
    if type(current) is not type(requested):
        return False
    if requested.name == "NEW":
        return False
    return True


def validate_transition(current: Status, requested: Status) -> None:
    """Raise InvalidStatusTransition unless the move is legal."""
    if not is_valid_transition(current, requested):
        raise InvalidStatusTransition(current, requested)
