"""
Demo data: one admin, four trainers with profiles, six trainees and a few
sessions. Safe to run repeatedly; only missing rows are created.
"""
import logging
from datetime import datetime, timedelta, timezone

import db
from auth import register_user
from config import DEFAULT_PASSWORD
from models import NewUser, NewTrainer, NewSession

logger = logging.getLogger(__name__)

ADMIN = ("admin", "Admin User")

TRAINERS = [
    ("trainer", "Sarah Johnson", "Engineering", "Technical Training"),
    ("trainer1", "Michael Davis", "Design", "UX/UI Design"),
    ("trainer2", "Emily Wilson", "Data Science", "Machine Learning"),
    ("trainer3", "David Thompson", "DevOps", "Cloud Infrastructure"),
]

TRAINEES = [
    ("trainee", "John Smith"),
    ("trainee1", "Lisa Brown"),
    ("trainee2", "Robert Garcia"),
    ("trainee3", "Jennifer Miller"),
    ("trainee4", "James Wilson"),
    ("trainee5", "Amanda Taylor"),
]

PRIMARY_SESSIONS = [
    (0, "Introduction to JavaScript",
     "Learn the fundamentals of JavaScript programming language."),
    (7, "Advanced React Development",
     "Dive deep into advanced React concepts and best practices."),
    (14, "Database Design Fundamentals",
     "Understanding database design principles and normalization."),
]

OTHER_SESSIONS = [
    ("Cloud Computing Fundamentals",
     "Learn the basics of cloud computing and popular platforms like AWS, Azure, and GCP."),
    ("Introduction to Artificial Intelligence",
     "Understand the fundamentals of AI, machine learning, and neural networks."),
    ("Web Development Bootcamp",
     "A comprehensive introduction to modern web development technologies."),
    ("Mobile App Development with React Native",
     "Build cross-platform mobile applications with React Native."),
    ("Cybersecurity Essentials",
     "Essential security practices for protecting applications and data."),
]


def _ensure_user(username: str, full_name: str, role: str):
    user = db.get_user_by_username(username)
    if user is None:
        user = register_user(NewUser(username=username, password=DEFAULT_PASSWORD,
                                     full_name=full_name, role=role))
    return user


def _ensure_trainer_profile(user, department: str, specialty: str):
    trainer = db.get_trainer_by_user_id(user.id)
    if trainer is None:
        trainer = db.create_trainer(NewTrainer(user_id=user.id, department=department, specialty=specialty))
        logger.info(f"Created trainer profile for user {user.username}")
    return trainer


def create_missing_trainer_profiles() -> int:
    """Give every trainer user without a profile a generic one. Returns how many were created."""
    created = 0
    for user in db.get_users_by_role("trainer"):
        if db.get_trainer_by_user_id(user.id) is None:
            _ensure_trainer_profile(user, "General", "Training")
            created += 1
    return created


def seed_sample_data(now: datetime | None = None):
    now = now or datetime.now(timezone.utc)

    _ensure_user(ADMIN[0], ADMIN[1], "admin")

    trainers = []
    for username, full_name, department, specialty in TRAINERS:
        user = _ensure_user(username, full_name, "trainer")
        if user.role == "trainer":
            trainers.append(_ensure_trainer_profile(user, department, specialty))

    for username, full_name in TRAINEES:
        _ensure_user(username, full_name, "trainee")

    if not db.get_all_sessions() and trainers:
        for offset_days, title, description in PRIMARY_SESSIONS:
            db.create_session(NewSession(
                title=title,
                trainer_id=trainers[0].id,
                date=(now + timedelta(days=offset_days)).isoformat(),
                description=description,
            ))

    all_trainers = db.get_all_trainers()
    for i, trainer in enumerate(all_trainers[1:], start=1):
        if db.get_sessions_by_trainer_id(trainer.id):
            continue
        title, description = OTHER_SESSIONS[i % len(OTHER_SESSIONS)]
        db.create_session(NewSession(
            title=title,
            trainer_id=trainer.id,
            date=(now + timedelta(days=i * 3)).isoformat(),
            description=description,
        ))

    created = create_missing_trainer_profiles()
    logger.info(f"Sample data ready ({created} missing trainer profile(s) created)")
