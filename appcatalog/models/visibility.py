"""Per-application visibility state machine.

All the tags of an application share one visibility:

    UNSET   -> PUBLIC | PRIVATE   (first tag decides)
    PUBLIC  -> PUBLIC             (new tags cannot be private)
    PRIVATE -> PRIVATE            (new tags adopt it; only an explicit toggle changes it)
"""

from enum import Enum
from typing import Optional

from ..errors import InternalError, NotFoundError, PermissionDeniedError


class Visibility(Enum):
    UNSET = "unset"
    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def from_flag(cls, is_private: Optional[bool]) -> 'Visibility':
        if is_private is None:
            return cls.UNSET
        return cls.PRIVATE if is_private else cls.PUBLIC

    @property
    def is_private(self) -> bool:
        return self is Visibility.PRIVATE


def resolve_new_tag_visibility(current: Optional[bool], requested_private: bool) -> bool:
    """Return the visibility a new tag must be stored with."""
    state = Visibility.from_flag(current)
    requested = Visibility.from_flag(requested_private)

    if state is Visibility.UNSET:
        return requested.is_private
    if state is Visibility.PUBLIC and requested is Visibility.PRIVATE:
        raise InternalError(
            "unable to add a private tag to a public application, change the application visibility first"
        )
    return state.is_private


def resolve_visibility_toggle(current: Optional[bool], requested_private: bool) -> bool:
    """Return the new visibility of an explicit toggle request."""
    state = Visibility.from_flag(current)
    requested = Visibility.from_flag(requested_private)

    if state is Visibility.UNSET:
        raise NotFoundError("unable to update application visibility, application not found")
    if state is requested:
        raise PermissionDeniedError(f"application is already {state.value}")
    return requested.is_private
