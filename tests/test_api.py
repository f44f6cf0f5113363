"""
Role rules and payloads of the application API.
"""

import pytest

import api
from errors import BadRequest, Forbidden, NotFound, Unauthorized


# ---------- access control ----------

def test_anonymous_is_rejected(people):
    with pytest.raises(Unauthorized) as exc:
        api.list_sessions(None)
    assert exc.value.status == 401
    with pytest.raises(Unauthorized):
        api.dashboard(None)


def test_sessions_visible_to_everyone(people):
    for user in (people.admin, people.trainer_a_user, people.trainee):
        titles = [s["title"] for s in api.list_sessions(user)]
        assert titles == ["Introduction to JavaScript", "Design Systems"]


def test_create_session_roles(people):
    data = {"title": "Kubernetes 101", "trainer_id": people.trainer_a.id, "description": "Pods and services."}
    with pytest.raises(Forbidden) as exc:
        api.create_session(people.trainee, data)
    assert exc.value.status == 403
    created = api.create_session(people.trainer_a_user, data)
    assert created["title"] == "Kubernetes 101"
    assert api.create_session(people.admin, data)["trainer_id"] == people.trainer_a.id


def test_create_session_invalid_payload(people):
    with pytest.raises(BadRequest) as exc:
        api.create_session(people.admin, {"trainer_id": people.trainer_a.id, "description": "x"})
    assert exc.value.status == 400
    assert exc.value.to_dict()["error"] == "Invalid session data"


def test_get_session(people):
    assert api.get_session(people.trainee, people.session_a.id)["id"] == people.session_a.id
    assert api.get_session(people.trainee, str(people.session_a.id))["id"] == people.session_a.id
    with pytest.raises(NotFound):
        api.get_session(people.trainee, 999)
    with pytest.raises(BadRequest):
        api.get_session(people.trainee, "abc")


# ---------- trainers ----------

def test_list_trainers_has_user_details(people):
    trainers = api.list_trainers(people.trainee)
    assert [(t["full_name"], t["username"]) for t in trainers] == [
        ("Sarah Johnson", "sarah"),
        ("Michael Davis", "michael"),
    ]


def test_get_trainer_by_user(people):
    assert api.get_trainer_by_user(people.admin, people.trainer_b_user.id)["department"] == "Design"
    with pytest.raises(NotFound):
        api.get_trainer_by_user(people.admin, people.trainee.id)
    with pytest.raises(BadRequest):
        api.get_trainer_by_user(people.admin, "nope")


def test_create_trainer_admin_only(people):
    data = {"user_id": people.other_trainee.id, "department": "Sales", "specialty": "Negotiation"}
    with pytest.raises(Forbidden):
        api.create_trainer(people.trainer_a_user, data)
    created = api.create_trainer(people.admin, data)
    assert created["department"] == "Sales"
    with pytest.raises(NotFound):
        api.create_trainer(people.admin, {**data, "user_id": 999})


def test_update_trainer_owner_or_admin(people):
    with pytest.raises(Forbidden):
        api.update_trainer(people.trainer_b_user, people.trainer_a.id, {"department": "Hijacked"})
    own = api.update_trainer(people.trainer_a_user, people.trainer_a.id, {"specialty": "Backend"})
    assert own["specialty"] == "Backend"
    by_admin = api.update_trainer(people.admin, people.trainer_a.id, {"department": "Platform"})
    assert by_admin["department"] == "Platform"
    with pytest.raises(NotFound):
        api.update_trainer(people.admin, 999, {"department": "X"})


def test_update_trainer_validates_fields(people):
    for bad in ({"department": ""}, {"specialty": "   "}, {"department": 7}):
        with pytest.raises(BadRequest) as exc:
            api.update_trainer(people.trainer_a_user, people.trainer_a.id, bad)
        assert exc.value.status == 400
    unchanged = api.get_trainer_by_user(people.trainer_a_user, people.trainer_a_user.id)
    assert (unchanged["department"], unchanged["specialty"]) == ("Engineering", people.trainer_a.specialty)
    trimmed = api.update_trainer(people.trainer_a_user, people.trainer_a.id, {"department": "  QA  ", "user_id": 99})
    assert trimmed["department"] == "QA"
    assert trimmed["user_id"] == people.trainer_a_user.id


# ---------- profile ----------

def test_update_profile_renames_self(people):
    updated = api.update_profile(people.trainee, people.trainee.id, {"full_name": "Johnny Smith", "role": "admin"})
    assert updated["full_name"] == "Johnny Smith"
    assert updated["role"] == "trainee"
    assert "password" not in updated


def test_update_profile_rules(people):
    with pytest.raises(Unauthorized):
        api.update_profile(None, people.trainee.id, {"full_name": "X"})
    with pytest.raises(Forbidden):
        api.update_profile(people.admin, people.trainee.id, {"full_name": "Renamed"})
    with pytest.raises(BadRequest):
        api.update_profile(people.trainee, people.trainee.id, {"full_name": " "})


# ---------- feedback ----------

def test_submit_feedback_scores_and_owns(people, payload):
    created = api.submit_feedback(people.trainee, payload(
        people.session_a.id, rating=5,
        comments="Excellent, clear and engaging session",
        trainee_id=people.other_trainee.id,
    ))
    assert created["trainee_id"] == people.trainee.id
    assert created["sentiment_score"] == 100
    assert created["strengths"] == []


def test_submit_feedback_without_comment(people, payload):
    created = api.submit_feedback(people.trainee, payload(people.session_a.id))
    assert created["comments"] is None
    assert created["sentiment_score"] == 50


def test_submit_feedback_trainee_only(people, payload):
    for user in (people.admin, people.trainer_a_user):
        with pytest.raises(Forbidden):
            api.submit_feedback(user, payload(people.session_a.id))


def test_submit_feedback_validation(people, payload):
    with pytest.raises(BadRequest) as exc:
        api.submit_feedback(people.trainee, payload(people.session_a.id, rating=6))
    assert "Must be 1-5" in exc.value.details
    with pytest.raises(BadRequest):
        api.submit_feedback(people.trainee, {"session_id": people.session_a.id})
    with pytest.raises(NotFound):
        api.submit_feedback(people.trainee, payload(999))


def test_list_feedback_admin_only(people, payload):
    api.submit_feedback(people.trainee, payload(people.session_a.id))
    assert len(api.list_feedback(people.admin)) == 1
    with pytest.raises(Forbidden):
        api.list_feedback(people.trainer_a_user)


def test_feedback_for_session(people, payload):
    api.submit_feedback(people.trainee, payload(people.session_a.id))
    api.submit_feedback(people.other_trainee, payload(people.session_b.id))
    rows = api.feedback_for_session(people.trainee, people.session_a.id)
    assert [r["session_id"] for r in rows] == [people.session_a.id]


def test_feedback_for_trainer_rules(people, payload):
    api.submit_feedback(people.trainee, payload(people.session_a.id, comments="good"))
    api.submit_feedback(people.trainee, payload(people.session_b.id, comments="boring"))

    own = api.feedback_for_trainer(people.trainer_a_user, people.trainer_a.id)
    assert [r["sentiment_score"] for r in own] == [100]
    with pytest.raises(Forbidden):
        api.feedback_for_trainer(people.trainer_a_user, people.trainer_b.id)
    assert [r["sentiment_score"] for r in api.feedback_for_trainer(people.admin, people.trainer_b.id)] == [0]
    with pytest.raises(Forbidden):
        api.feedback_for_trainer(people.trainee, people.trainer_a.id)


def test_feedback_for_trainee_is_own(people, payload):
    api.submit_feedback(people.trainee, payload(people.session_a.id))
    api.submit_feedback(people.other_trainee, payload(people.session_a.id))
    rows = api.feedback_for_trainee(people.trainee)
    assert [r["trainee_id"] for r in rows] == [people.trainee.id]


# ---------- dashboard ----------

def test_admin_dashboard(people, payload):
    api.submit_feedback(people.trainee, payload(people.session_a.id, rating=4, comments="great"))
    api.submit_feedback(people.other_trainee, payload(people.session_b.id, rating=5, comments="confusing"))
    data = api.dashboard(people.admin)
    assert data["metrics"] == {
        "total_trainers": 2,
        "total_feedback": 2,
        "avg_rating": 4.5,
        "sentiment_score": 50,
    }
    assert len(data["sessions"]) == 2
    assert data["trainers"][0]["full_name"] == "Sarah Johnson"


def test_admin_dashboard_empty(people):
    metrics = api.dashboard(people.admin)["metrics"]
    assert metrics["avg_rating"] == 0.0
    assert metrics["sentiment_score"] == 50


def test_trainer_dashboard(people, payload):
    api.submit_feedback(people.trainee, payload(people.session_a.id, rating=3, comments="rushed"))
    api.submit_feedback(people.trainee, payload(people.session_b.id, rating=5, comments="amazing"))
    data = api.dashboard(people.trainer_a_user)
    assert data["metrics"] == {
        "total_sessions": 1,
        "total_feedback": 1,
        "avg_rating": 3.0,
        "sentiment_score": 0,
    }
    assert data["trainer"]["id"] == people.trainer_a.id


def test_trainer_dashboard_without_profile(people):
    from auth import register_user
    from models import NewUser
    newcomer = register_user(NewUser(username="newbie", password="pw", full_name="New Trainer", role="trainer"))
    with pytest.raises(NotFound):
        api.dashboard(newcomer)


def test_trainee_dashboard(people, payload):
    api.submit_feedback(people.trainee, payload(people.session_a.id))
    data = api.dashboard(people.trainee)
    assert set(data) == {"sessions", "submitted_feedback"}
    assert len(data["sessions"]) == 2
    assert len(data["submitted_feedback"]) == 1
