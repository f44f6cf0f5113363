"""
Demo data seeding.
"""

import db
from auth import authenticate, register_user
from config import DEFAULT_PASSWORD
from models import NewUser
from seed import create_missing_trainer_profiles, seed_sample_data


def _counts():
    users = sum(len(db.get_users_by_role(r)) for r in ("admin", "trainer", "trainee"))
    return users, len(db.get_all_trainers()), len(db.get_all_sessions())


def test_seed_creates_demo_data(fresh_db):
    seed_sample_data()
    assert _counts() == (11, 4, 6)
    assert authenticate("admin", DEFAULT_PASSWORD).role == "admin"
    primary = db.get_trainer_by_user_id(db.get_user_by_username("trainer").id)
    assert len(db.get_sessions_by_trainer_id(primary.id)) == 3


def test_seed_is_idempotent(fresh_db):
    seed_sample_data()
    seed_sample_data()
    assert _counts() == (11, 4, 6)


def test_missing_trainer_profiles_are_created(fresh_db):
    user = register_user(NewUser(username="orphan", password="pw", full_name="Orphan Trainer", role="trainer"))
    assert create_missing_trainer_profiles() == 1
    profile = db.get_trainer_by_user_id(user.id)
    assert (profile.department, profile.specialty) == ("General", "Training")
    assert create_missing_trainer_profiles() == 0
