"""
Application API used by the dashboard and the CLI.

Every operation takes the current user first (None when nobody is logged in)
and returns plain dicts / lists. Access rules:
- admin:   everything
- trainer: sessions, own trainer profile, feedback on own sessions
- trainee: sessions, submit feedback, own submissions
Failures raise errors.ApiError subclasses carrying the status to report.
"""

import functools
import logging
from typing import Any, Dict, List, Optional

import db
from auth import public_user
from errors import ApiError, BadRequest, Unauthorized, Forbidden, NotFound
from metrics.ratings import average_rating, average_sentiment
from models import User, NewSession, NewTrainer, NewFeedback, _require_text

logger = logging.getLogger(__name__)


def requires_role(*roles: str):
    """Reject anonymous callers with 401, and callers outside `roles` with 403.
    No roles means any logged-in user."""
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(user: Optional[User], *args, **kwargs):
            if user is None:
                raise Unauthorized("Unauthorized")
            if roles and user.role not in roles:
                raise Forbidden("Forbidden - Insufficient permissions")
            return fn(user, *args, **kwargs)
        return wrapper
    return decorator


def _parse(cls, data: Dict[str, Any], label: str):
    try:
        return cls(**data)
    except (TypeError, ValueError) as e:
        raise BadRequest(f"Invalid {label} data", details=str(e))


def _as_id(value, label: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"Invalid {label}")


def _dicts(records) -> List[dict]:
    return [r.to_dict() for r in records]


def _text_updates(updates: Optional[Dict[str, Any]], allowed, label: str) -> Dict[str, str]:
    try:
        return {k: _require_text(k, v) for k, v in (updates or {}).items() if k in allowed}
    except ValueError as e:
        raise BadRequest(f"Invalid {label} data", details=str(e))


def _with_user_details(trainer) -> dict:
    user = db.get_user(trainer.user_id)
    out = trainer.to_dict()
    out["full_name"] = user.full_name if user else None
    out["username"] = user.username if user else None
    return out


# ---------- Users ----------

@requires_role()
def update_profile(user: User, user_id, updates: Dict[str, Any]) -> dict:
    """Let a user rename themselves. Only `full_name` can change here."""
    if _as_id(user_id, "user ID") != user.id:
        raise Forbidden("Forbidden - You can only update your own profile")
    updated = db.update_user(user.id, _text_updates(updates, ("full_name",), "profile"))
    logger.info(f"{user.username} updated their profile")
    return public_user(updated)


# ---------- Sessions ----------

@requires_role()
def list_sessions(user: User) -> List[dict]:
    return _dicts(db.get_all_sessions())


@requires_role("admin", "trainer")
def create_session(user: User, data: Dict[str, Any]) -> dict:
    new_session = _parse(NewSession, data, "session")
    try:
        session = db.create_session(new_session)
    except LookupError as e:
        raise NotFound(str(e))
    logger.info(f"{user.username} created session {session.id} ({session.title!r})")
    return session.to_dict()


@requires_role()
def get_session(user: User, session_id) -> dict:
    session = db.get_session(_as_id(session_id, "session ID"))
    if session is None:
        raise NotFound("Session not found")
    return session.to_dict()


# ---------- Trainers ----------

@requires_role()
def list_trainers(user: User) -> List[dict]:
    return [_with_user_details(t) for t in db.get_all_trainers()]


@requires_role()
def get_trainer_by_user(user: User, user_id) -> dict:
    trainer = db.get_trainer_by_user_id(_as_id(user_id, "user ID"))
    if trainer is None:
        raise NotFound("Trainer profile not found")
    return _with_user_details(trainer)


@requires_role("admin")
def create_trainer(user: User, data: Dict[str, Any]) -> dict:
    new_trainer = _parse(NewTrainer, data, "trainer")
    try:
        trainer = db.create_trainer(new_trainer)
    except LookupError as e:
        raise NotFound(str(e))
    return trainer.to_dict()


@requires_role()
def update_trainer(user: User, trainer_id, updates: Dict[str, Any]) -> dict:
    trainer = db.get_trainer(_as_id(trainer_id, "trainer ID"))
    if trainer is None:
        raise NotFound("Trainer not found")
    if trainer.user_id != user.id and user.role != "admin":
        raise Forbidden("Forbidden - You can only update your own trainer profile")
    updated = db.update_trainer(trainer.id, _text_updates(updates, ("department", "specialty"), "trainer"))
    if updated is None:
        raise NotFound("Failed to update trainer profile")
    return updated.to_dict()


# ---------- Feedback ----------

@requires_role("admin")
def list_feedback(user: User) -> List[dict]:
    return _dicts(db.get_all_feedback())


@requires_role("trainee")
def submit_feedback(user: User, data: Dict[str, Any]) -> dict:
    # trainee_id always comes from the logged-in user
    payload = dict(data or {})
    payload["trainee_id"] = user.id
    new_feedback = _parse(NewFeedback, payload, "feedback")
    try:
        feedback = db.create_feedback(new_feedback)
    except LookupError as e:
        logger.error(f"Feedback submission error: {e}")
        raise NotFound(str(e))
    return feedback.to_dict()


@requires_role()
def feedback_for_session(user: User, session_id) -> List[dict]:
    return _dicts(db.get_feedback_by_session_id(_as_id(session_id, "session ID")))


@requires_role("admin", "trainer")
def feedback_for_trainer(user: User, trainer_id) -> List[dict]:
    trainer_id = _as_id(trainer_id, "trainer ID")
    if user.role == "trainer":
        own = db.get_trainer_by_user_id(user.id)
        if own is None or own.id != trainer_id:
            raise Forbidden("Forbidden - You can only view your own feedback")
    return _dicts(db.get_feedback_by_trainer_id(trainer_id))


@requires_role("trainee")
def feedback_for_trainee(user: User) -> List[dict]:
    return _dicts(db.get_feedback_by_trainee_id(user.id))


# ---------- Dashboard ----------

@requires_role()
def dashboard(user: User) -> dict:
    if user.role == "admin":
        feedback = db.get_all_feedback()
        trainers = db.get_all_trainers()
        sessions = db.get_all_sessions()
        return {
            "metrics": {
                "total_trainers": len(trainers),
                "total_feedback": len(feedback),
                "avg_rating": average_rating(feedback),
                "sentiment_score": average_sentiment(feedback),
            },
            "trainers": [_with_user_details(t) for t in trainers],
            "feedback": _dicts(feedback),
            "sessions": _dicts(sessions),
        }

    if user.role == "trainer":
        trainer = db.get_trainer_by_user_id(user.id)
        if trainer is None:
            raise NotFound("Trainer profile not found")
        feedback = db.get_feedback_by_trainer_id(trainer.id)
        sessions = db.get_sessions_by_trainer_id(trainer.id)
        return {
            "metrics": {
                "total_sessions": len(sessions),
                "total_feedback": len(feedback),
                "avg_rating": average_rating(feedback),
                "sentiment_score": average_sentiment(feedback),
            },
            "trainer": trainer.to_dict(),
            "feedback": _dicts(feedback),
            "sessions": _dicts(sessions),
        }

    return {
        "sessions": _dicts(db.get_all_sessions()),
        "submitted_feedback": _dicts(db.get_feedback_by_trainee_id(user.id)),
    }


__all__ = [
    "ApiError", "requires_role", "update_profile",
    "list_sessions", "create_session", "get_session",
    "list_trainers", "get_trainer_by_user", "create_trainer", "update_trainer",
    "list_feedback", "submit_feedback", "feedback_for_session",
    "feedback_for_trainer", "feedback_for_trainee", "dashboard",
]
