# streamlit_app.py
import logging

import streamlit as st
import pandas as pd
import altair as alt

import api
import db
from auth import authenticate, change_password, public_user, register_user
from config import LOG_LEVEL, LOG_FORMAT, SEED_SAMPLE_DATA
from errors import ApiError
from metrics.ratings import category_averages
from metrics.sentiment import (
    SENTIMENT_COLORS, sentiment_distribution, sentiment_percentages, distribution_chart_data,
)
from models import NewUser, ROLES
from reports import (
    feedback_frame, filter_feedback, history_metrics, monthly_trends,
    trainer_leaderboard, department_summary,
)
from seed import seed_sample_data

logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO), format=LOG_FORMAT)

st.set_page_config(page_title="Trainer Feedback", layout="wide")
st.title("🎓 Trainer Feedback — Performance & Sentiment")

STRENGTH_OPTIONS = [
    "Clear Explanations", "Knowledgeable", "Engaging",
    "Well Prepared", "Responsive", "Practical Examples",
]
IMPROVEMENT_OPTIONS = [
    "Pacing", "Content Depth", "Q&A Time",
    "Materials", "Interaction", "Technical Issues",
]

# ---------------- Utilities ----------------
@st.cache_resource(show_spinner=False)
def bootstrap(db_path: str):
    db.init_db()
    if SEED_SAMPLE_DATA:
        seed_sample_data()
    return db_path

def current_user():
    user_id = st.session_state.get("user_id")
    return db.get_user(user_id) if user_id else None

def call(fn, *args, **kwargs):
    """Run an api function; show the error and return None on failure."""
    try:
        return fn(*args, **kwargs)
    except ApiError as e:
        st.error(f"{e.message}" + (f" ({e.details})" if e.details else ""))
        return None

def sentiment_pie(records):
    dist = sentiment_distribution(records)
    rows = distribution_chart_data(dist)
    chart = alt.Chart(pd.DataFrame(rows)).mark_arc().encode(
        theta="value:Q",
        color=alt.Color("name:N", scale=alt.Scale(
            domain=[r["name"] for r in rows],
            range=[r["fill"] for r in rows],
        )),
        tooltip=["name:N", "value:Q"],
    )
    st.altair_chart(chart, use_container_width=True)
    pct = sentiment_percentages(dist)
    c1, c2, c3 = st.columns(3)
    c1.metric("Positive", pct["positive"])
    c2.metric("Neutral", pct["neutral"])
    c3.metric("Negative", pct["negative"])

def feedback_table(records, session_titles):
    df = feedback_frame(records)
    if df.empty:
        st.info("No feedback yet.")
        return
    df["session"] = df["session_id"].map(session_titles)
    show_cols = ["created_at", "session", "overall_rating", "sentiment", "sentiment_score", "comments"]
    st.dataframe(df[show_cols].sort_values("created_at", ascending=False), width="stretch")

def category_chart(records):
    cats = pd.DataFrame(
        [{"category": k, "avg": v} for k, v in category_averages(records).items()]
    )
    bar = alt.Chart(cats).mark_bar().encode(
        x="category:N", y=alt.Y("avg:Q", scale=alt.Scale(domain=[0, 5])),
        tooltip=["category", "avg"],
    )
    st.altair_chart(bar, use_container_width=True)

def account_forms(user):
    """Full name and password forms shown to every role."""
    me = public_user(user)
    with st.form("account"):
        full_name = st.text_input("Full name", value=me["full_name"])
        st.text_input("Username", value=me["username"], disabled=True)
        if st.form_submit_button("Update profile"):
            if call(api.update_profile, user, me["id"], {"full_name": full_name}):
                st.success("Profile updated.")
                st.rerun()
    with st.form("password", clear_on_submit=True):
        current = st.text_input("Current password", type="password")
        new = st.text_input("New password", type="password", help="At least 6 characters.")
        confirm = st.text_input("Confirm new password", type="password")
        if st.form_submit_button("Change password"):
            if new != confirm:
                st.error("Passwords don't match")
            elif call(change_password, user, current, new):
                st.success("Password changed.")

bootstrap(db.db_path())

# ---------------- Sidebar: login ----------------
with st.sidebar:
    st.header("Account")
    user = current_user()
    if user is None:
        login_tab, register_tab = st.tabs(["Login", "Register"])
        with login_tab:
            with st.form("login"):
                username = st.text_input("Username")
                password = st.text_input("Password", type="password")
                if st.form_submit_button("Login"):
                    u = call(authenticate, username, password)
                    if u is not None:
                        st.session_state["user_id"] = u.id
                        st.rerun()
        with register_tab:
            with st.form("register"):
                r_username = st.text_input("Username", key="r_username")
                r_full_name = st.text_input("Full name")
                r_password = st.text_input("Password", type="password", key="r_password")
                r_role = st.selectbox("Role", ROLES, index=ROLES.index("trainee"))
                if st.form_submit_button("Create account"):
                    try:
                        new_user = NewUser(username=r_username, password=r_password,
                                           full_name=r_full_name, role=r_role)
                    except ValueError as e:
                        st.error(str(e))
                    else:
                        u = call(register_user, new_user)
                        if u is not None:
                            st.session_state["user_id"] = u.id
                            st.rerun()
    else:
        st.write(f"**{user.full_name}**")
        st.caption(user.role.capitalize())
        if st.button("Logout"):
            st.session_state.pop("user_id", None)
            st.rerun()

if user is None:
    st.info("Log in to see your dashboard.")
    st.stop()

sessions = call(api.list_sessions, user) or []
session_titles = {s["id"]: s["title"] for s in sessions}

# ---------------- Admin ----------------
if user.role == "admin":
    data = call(api.dashboard, user) or {}
    m = data.get("metrics", {})
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Trainers", m.get("total_trainers", 0))
    c2.metric("Feedback", m.get("total_feedback", 0))
    c3.metric("Avg Rating", f"{m.get('avg_rating', 0):.1f}")
    c4.metric("Sentiment Score", f"{m.get('sentiment_score', 0)}%")

    tab1, tab2, tab3, tab4, tab5 = st.tabs(
        ["📊 Overview", "👩‍🏫 Trainers", "📈 Reports", "🗓️ Sessions", "👤 Profile"]
    )
    feedback = data.get("feedback", [])
    trainers = data.get("trainers", [])

    with tab1:
        left, right = st.columns(2)
        with left:
            st.subheader("Feedback Sentiment Analysis")
            sentiment_pie(feedback)
        with right:
            st.subheader("Rating by Category")
            category_chart(feedback)
        st.subheader("Recent Feedback")
        feedback_table(feedback, session_titles)

    with tab2:
        st.subheader("Trainer Performance")
        board = trainer_leaderboard(feedback, data.get("sessions", []), trainers)
        st.dataframe(board, width="stretch")

        st.subheader("Add Trainer Profile")
        trainer_users = [u for u in db.get_users_by_role("trainer") if db.get_trainer_by_user_id(u.id) is None]
        with st.form("new_trainer"):
            picked = st.selectbox("User", trainer_users, format_func=lambda u: f"{u.full_name} ({u.username})")
            department = st.text_input("Department")
            specialty = st.text_input("Specialty")
            if st.form_submit_button("Create profile") and picked is not None:
                if call(api.create_trainer, user, {"user_id": picked.id, "department": department, "specialty": specialty}):
                    st.success("Trainer profile created.")

    with tab3:
        df = feedback_frame(feedback)
        st.subheader("Monthly Performance Trends")
        trend = monthly_trends(df)
        if not trend.empty:
            line = alt.Chart(trend).mark_line(point=True).encode(
                x="month:T", y=alt.Y("avg_rating:Q", scale=alt.Scale(domain=[0, 5])),
                tooltip=["month:T", "avg_rating:Q", "total_feedback:Q"],
            )
            bars = alt.Chart(trend).mark_bar(opacity=0.3).encode(x="month:T", y="total_feedback:Q")
            st.altair_chart(alt.layer(bars, line).resolve_scale(y="independent"), use_container_width=True)

            sent = alt.Chart(trend).mark_line(point=True, color=SENTIMENT_COLORS["positive"]).encode(
                x="month:T", y=alt.Y("avg_sentiment:Q", scale=alt.Scale(domain=[0, 100])),
            )
            st.altair_chart(sent, use_container_width=True)
        else:
            st.info("No feedback yet.")

        st.subheader("Department Performance")
        st.dataframe(department_summary(feedback, data.get("sessions", []), trainers), width="stretch")

        st.subheader("Sentiment Distribution")
        if not df.empty:
            hist = alt.Chart(df.dropna(subset=["sentiment_score"])).mark_bar().encode(
                alt.X("sentiment_score:Q", bin=alt.Bin(maxbins=20), title="Sentiment"),
                y="count()",
            )
            st.altair_chart(hist, use_container_width=True)

    with tab4:
        st.dataframe(pd.DataFrame(sessions), width="stretch")

    with tab5:
        account_forms(user)

# ---------------- Trainer ----------------
elif user.role == "trainer":
    data = call(api.dashboard, user)
    if data is None:
        st.stop()
    m = data["metrics"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Sessions", m["total_sessions"])
    c2.metric("Feedback", m["total_feedback"])
    c3.metric("Avg Rating", f"{m['avg_rating']:.1f}")
    c4.metric("Sentiment Score", f"{m['sentiment_score']}%")

    tab1, tab2, tab3 = st.tabs(["📊 Overview", "🗓️ Sessions", "👤 Profile"])
    feedback = data["feedback"]

    with tab1:
        left, right = st.columns(2)
        with left:
            st.subheader("Sentiment Analysis")
            sentiment_pie(feedback)
        with right:
            st.subheader("Rating by Category")
            category_chart(feedback)
        st.subheader("Feedback")
        feedback_table(feedback, session_titles)

    with tab2:
        st.dataframe(pd.DataFrame(data["sessions"]), width="stretch")
        st.subheader("New Session")
        with st.form("new_session"):
            title = st.text_input("Title")
            date = st.date_input("Date")
            description = st.text_area("Description")
            if st.form_submit_button("Create session"):
                created = call(api.create_session, user, {
                    "title": title,
                    "trainer_id": data["trainer"]["id"],
                    "date": pd.Timestamp(date).isoformat(),
                    "description": description,
                })
                if created:
                    st.success(f"Session {created['title']!r} created.")

    with tab3:
        trainer = data["trainer"]
        with st.form("profile"):
            department = st.text_input("Department", value=trainer["department"])
            specialty = st.text_input("Specialty", value=trainer["specialty"])
            if st.form_submit_button("Save"):
                if call(api.update_trainer, user, trainer["id"], {"department": department, "specialty": specialty}):
                    st.success("Profile updated.")
        st.subheader("Account")
        account_forms(user)

# ---------------- Trainee ----------------
else:
    data = call(api.dashboard, user) or {}
    submitted = data.get("submitted_feedback", [])
    tab1, tab2, tab3 = st.tabs(["✍️ Submit Feedback", "🕘 History", "👤 Profile"])

    with tab1:
        if not sessions:
            st.info("No training sessions yet.")
        else:
            with st.form("feedback"):
                session_id = st.selectbox("Session", list(session_titles), format_func=session_titles.get)
                ratings = {}
                for label, field in [
                    ("Overall", "overall_rating"),
                    ("Knowledge", "knowledge_rating"),
                    ("Communication", "communication_rating"),
                    ("Materials", "materials_rating"),
                    ("Engagement", "engagement_rating"),
                ]:
                    ratings[field] = st.slider(label, 1, 5, 3)
                strengths = st.multiselect("Strengths", STRENGTH_OPTIONS)
                improvements = st.multiselect("Areas for improvement", IMPROVEMENT_OPTIONS)
                comments = st.text_area("Comments")
                if st.form_submit_button("Submit feedback"):
                    created = call(api.submit_feedback, user, {
                        "session_id": session_id,
                        **ratings,
                        "comments": comments,
                        "strengths": strengths,
                        "improvements": improvements,
                    })
                    if created:
                        st.success("Thanks for your feedback!")

    with tab2:
        hm = history_metrics(submitted)
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Total", hm["total"])
        c2.metric("Avg Rating", f"{hm['avg_rating']:.1f}")
        c3.metric("Sessions", hm["sessions"])
        c4.metric("Last month", hm["recent"])

        f1, f2 = st.columns(2)
        with f1:
            band = st.selectbox("Rating", ["all", "high", "medium", "low"])
        with f2:
            period = st.selectbox("Period", ["all", "week", "month", "quarter"])
        v = filter_feedback(feedback_frame(submitted), band=band, period=period)
        if v.empty:
            st.info("No feedback matches.")
        else:
            v["session"] = v["session_id"].map(session_titles)
            st.dataframe(
                v[["created_at", "session", "overall_rating", "sentiment", "comments"]]
                .sort_values("created_at", ascending=False),
                width="stretch",
            )

    with tab3:
        account_forms(user)
