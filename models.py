"""
Record types for users, trainers, training sessions and feedback.

Stored rows come back as the plain record dataclasses; the New* payloads
validate caller input before anything reaches the database.
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional

ROLES = ("admin", "trainer", "trainee")

RATING_FIELDS = (
    "overall_rating",
    "knowledge_rating",
    "communication_rating",
    "materials_rating",
    "engagement_rating",
)


def _require_text(name: str, value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} is required")
    return value.strip()


def _require_id(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Invalid {name}: {value!r}. Must be a positive integer")
    return value


def _require_rating(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not (1 <= value <= 5):
        raise ValueError(f"Invalid {name}: {value!r}. Must be 1-5")
    return value


def _text_list(name: str, value) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{name} must be a list of strings")
    return list(value)


def _json_list(cell) -> List[str]:
    if cell in (None, "", "null"):
        return []
    data = json.loads(cell)
    return [str(v) for v in data] if isinstance(data, list) else []


# ---------- Stored records ----------

@dataclass
class User:
    id: int
    username: str
    password: str  # "<hash>.<salt>", never returned to callers
    full_name: str
    role: str = "trainee"

    @classmethod
    def from_row(cls, row) -> "User":
        return cls(
            id=row["id"],
            username=row["username"],
            password=row["password"],
            full_name=row["full_name"],
            role=row["role"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Trainer:
    id: int
    user_id: int
    department: str
    specialty: str

    @classmethod
    def from_row(cls, row) -> "Trainer":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            department=row["department"],
            specialty=row["specialty"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TrainingSession:
    id: int
    title: str
    trainer_id: int
    date: str  # ISO 8601, UTC
    description: str

    @classmethod
    def from_row(cls, row) -> "TrainingSession":
        return cls(
            id=row["id"],
            title=row["title"],
            trainer_id=row["trainer_id"],
            date=row["date"],
            description=row["description"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Feedback:
    id: int
    session_id: int
    trainee_id: int
    overall_rating: int
    knowledge_rating: int
    communication_rating: int
    materials_rating: int
    engagement_rating: int
    comments: Optional[str]
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    sentiment_score: Optional[int] = None  # None only for rows that predate scoring
    created_at: str = ""

    @classmethod
    def from_row(cls, row) -> "Feedback":
        return cls(
            id=row["id"],
            session_id=row["session_id"],
            trainee_id=row["trainee_id"],
            overall_rating=row["overall_rating"],
            knowledge_rating=row["knowledge_rating"],
            communication_rating=row["communication_rating"],
            materials_rating=row["materials_rating"],
            engagement_rating=row["engagement_rating"],
            comments=row["comments"],
            strengths=_json_list(row["strengths"]),
            improvements=_json_list(row["improvements"]),
            sentiment_score=row["sentiment_score"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


# ---------- Input payloads ----------

@dataclass
class NewUser:
    username: str
    password: str
    full_name: str
    role: str = "trainee"

    def __post_init__(self):
        self.username = _require_text("username", self.username)
        if not isinstance(self.password, str) or not self.password:
            raise ValueError("password is required")
        self.full_name = _require_text("full_name", self.full_name)
        if self.role not in ROLES:
            raise ValueError(f"Invalid role: {self.role}. Must be one of {', '.join(ROLES)}")


@dataclass
class NewTrainer:
    user_id: int
    department: str
    specialty: str

    def __post_init__(self):
        _require_id("user_id", self.user_id)
        self.department = _require_text("department", self.department)
        self.specialty = _require_text("specialty", self.specialty)


@dataclass
class NewSession:
    title: str
    trainer_id: int
    description: str
    date: Optional[str] = None  # defaults to "now" at insert time

    def __post_init__(self):
        self.title = _require_text("title", self.title)
        _require_id("trainer_id", self.trainer_id)
        self.description = _require_text("description", self.description)
        if isinstance(self.date, datetime):
            self.date = self.date.isoformat()
        elif self.date is not None:
            try:
                datetime.fromisoformat(self.date)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid date: {self.date!r}. Must be ISO 8601")


@dataclass
class NewFeedback:
    session_id: int
    trainee_id: int
    overall_rating: int
    knowledge_rating: int
    communication_rating: int
    materials_rating: int
    engagement_rating: int
    comments: Optional[str] = None
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)

    def __post_init__(self):
        _require_id("session_id", self.session_id)
        _require_id("trainee_id", self.trainee_id)
        for name in RATING_FIELDS:
            _require_rating(name, getattr(self, name))
        if self.comments is not None and not isinstance(self.comments, str):
            raise ValueError("comments must be text")
        # blank comment is stored as "no comment"
        self.comments = self.comments or None
        self.strengths = _text_list("strengths", self.strengths)
        self.improvements = _text_list("improvements", self.improvements)
