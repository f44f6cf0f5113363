"""
Shared fixtures: every test that touches storage gets its own SQLite file.
"""

from types import SimpleNamespace

import pytest

import db
from auth import register_user
from models import NewUser, NewTrainer, NewSession


@pytest.fixture
def fresh_db(tmp_path):
    """Point the storage module at an empty database for one test."""
    original = db.db_path()
    db.reset_connection(str(tmp_path / "feedback.db"))
    db.init_db()
    yield db
    db.reset_connection(original)


def _user(username, role, full_name=None):
    return register_user(NewUser(
        username=username,
        password="secret",
        full_name=full_name or username.title(),
        role=role,
    ))


@pytest.fixture
def people(fresh_db):
    """
    admin, two trainers with profiles and one session each, two trainees.
    All passwords are "secret".
    """
    admin = _user("admin", "admin", "Admin User")

    trainer_a_user = _user("sarah", "trainer", "Sarah Johnson")
    trainer_a = db.create_trainer(NewTrainer(user_id=trainer_a_user.id, department="Engineering",
                                             specialty="Technical Training"))
    trainer_b_user = _user("michael", "trainer", "Michael Davis")
    trainer_b = db.create_trainer(NewTrainer(user_id=trainer_b_user.id, department="Design",
                                             specialty="UX/UI Design"))

    trainee = _user("john", "trainee", "John Smith")
    other_trainee = _user("lisa", "trainee", "Lisa Brown")

    session_a = db.create_session(NewSession(title="Introduction to JavaScript", trainer_id=trainer_a.id,
                                             description="Fundamentals of JavaScript."))
    session_b = db.create_session(NewSession(title="Design Systems", trainer_id=trainer_b.id,
                                             description="Building reusable UI components."))

    return SimpleNamespace(
        admin=admin,
        trainer_a_user=trainer_a_user, trainer_a=trainer_a,
        trainer_b_user=trainer_b_user, trainer_b=trainer_b,
        trainee=trainee, other_trainee=other_trainee,
        session_a=session_a, session_b=session_b,
    )


@pytest.fixture
def payload():
    """Build a feedback payload with every rating set to `rating`."""
    def build(session_id, rating=4, comments=None, **overrides):
        data = {
            "session_id": session_id,
            "overall_rating": rating,
            "knowledge_rating": rating,
            "communication_rating": rating,
            "materials_rating": rating,
            "engagement_rating": rating,
            "comments": comments,
        }
        data.update(overrides)
        return data
    return build
