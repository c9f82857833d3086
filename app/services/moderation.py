"""
Moderation state machine for comments and feedback.

Comment states:
    pending  — initial (unless auto-visible is configured)
    visible  — publicly readable
    hidden   — suppressed by a moderator

Moderators may move any comment to ``visible`` or ``hidden``; re-applying
the current state is a no-op. ``pending`` is only ever an initial state.
Feedback triage states (new / triaged / closed) are freely reassignable.
Deletion is orthogonal and not modelled here.
"""

from typing import FrozenSet, Union

from app.core.errors import ValidationFailed
from app.models.comment import CommentStatus
from app.models.feedback import FeedbackStatus

_COMMENT_TRANSITIONS = {
    CommentStatus.PENDING: frozenset({CommentStatus.VISIBLE, CommentStatus.HIDDEN}),
    CommentStatus.VISIBLE: frozenset({CommentStatus.VISIBLE, CommentStatus.HIDDEN}),
    CommentStatus.HIDDEN: frozenset({CommentStatus.VISIBLE, CommentStatus.HIDDEN}),
}

PUBLIC_COMMENT_STATUS = CommentStatus.VISIBLE

# Feedback statuses visible through the public listing, per mode
FEEDBACK_PUBLIC_MODES = {
    "recent": frozenset({FeedbackStatus.NEW, FeedbackStatus.TRIAGED}),
    "all": frozenset(FeedbackStatus),
}


def initial_comment_status(auto_visible: bool) -> CommentStatus:
    return CommentStatus.VISIBLE if auto_visible else CommentStatus.PENDING


def can_transition(current: Union[CommentStatus, str], target: Union[CommentStatus, str]) -> bool:
    try:
        current, target = CommentStatus(current), CommentStatus(target)
    except ValueError:
        return False
    return target in _COMMENT_TRANSITIONS[current]


def allowed_sources(target: Union[CommentStatus, str]) -> FrozenSet[CommentStatus]:
    """States from which a moderator may move a comment to ``target``.

    Used to make the status write conditional, so legality is checked by the
    same statement that applies it.
    """
    target = CommentStatus(target)
    return frozenset(src for src, dsts in _COMMENT_TRANSITIONS.items() if target in dsts)


def ensure_transition(current: Union[CommentStatus, str], target: Union[CommentStatus, str]) -> CommentStatus:
    if not can_transition(current, target):
        raise ValidationFailed(
            detail=f"illegal status transition {current!s} -> {target!s}",
            details=[{"loc": ["status"], "msg": f"cannot move a comment to {_value(target)!r}", "type": "transition"}],
        )
    return CommentStatus(target)


def public_feedback_statuses(mode: str, status_filter: Union[FeedbackStatus, str, None] = None) -> FrozenSet[FeedbackStatus]:
    """Statuses the public feedback listing may return for ``mode``.

    The optional caller filter is intersected with the mode's set; an
    unknown mode is a validation error.
    """
    if mode not in FEEDBACK_PUBLIC_MODES:
        raise ValidationFailed(
            detail=f"unknown feedback mode {mode!r}",
            details=[{"loc": ["mode"], "msg": "mode must be 'recent' or 'all'", "type": "enum"}],
        )
    allowed = FEEDBACK_PUBLIC_MODES[mode]
    if status_filter is None:
        return allowed
    return allowed & {FeedbackStatus(status_filter)}


def _value(status: Union[CommentStatus, str]) -> str:
    return status.value if isinstance(status, CommentStatus) else str(status)
