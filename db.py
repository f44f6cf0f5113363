# db.py
import os, json, sqlite3, logging, threading
from datetime import datetime, timezone
from typing import Optional, List, Tuple

from config import DB_PATH
from metrics.sentiment import compute_sentiment_score
from models import (
    User, Trainer, TrainingSession, Feedback,
    NewUser, NewTrainer, NewSession, NewFeedback,
)

logger = logging.getLogger(__name__)

# Single shared connection and explicit DB path
_DB_PATH = os.path.abspath(DB_PATH)
_CONN: Optional[sqlite3.Connection] = None
# Streamlit threads share the connection: reads hold this per query, writes until commit
_LOCK = threading.RLock()

# ---------- Connection & helpers ----------

def _connect() -> sqlite3.Connection:
    global _CONN
    if _CONN is not None:
        return _CONN
    with _LOCK:
        if _CONN is None:
            # Streamlit reruns scripts on worker threads
            con = sqlite3.connect(_DB_PATH, check_same_thread=False)
            con.row_factory = sqlite3.Row
            con.execute("PRAGMA journal_mode=WAL;")
            con.execute("PRAGMA foreign_keys=ON;")
            _CONN = con
    return _CONN

def reset_connection(db_path: Optional[str] = None):
    """Close the shared connection; optionally switch to another database file."""
    global _CONN, _DB_PATH
    with _LOCK:
        if _CONN is not None:
            _CONN.close()
            _CONN = None
        if db_path:
            _DB_PATH = os.path.abspath(db_path)

def db_path() -> str:
    return _DB_PATH

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def _table_exists(cur: sqlite3.Cursor, name: str) -> bool:
    cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,))
    return cur.fetchone() is not None

def _columns(cur: sqlite3.Cursor, table: str) -> List[Tuple[int,str,str,int,int,int]]:
    # rows: cid, name, type, notnull, dflt_value, pk
    cur.execute(f"PRAGMA table_info({table})")
    return cur.fetchall()

def _colnames(cur: sqlite3.Cursor, table: str) -> List[str]:
    return [c[1] for c in _columns(cur, table)]

def _one(sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
    con = _connect()
    with _LOCK:
        return con.execute(sql, params).fetchone()

def _all(sql: str, params: tuple = ()) -> List[sqlite3.Row]:
    con = _connect()
    with _LOCK:
        return con.execute(sql, params).fetchall()

def _exists(cur: sqlite3.Cursor, table: str, row_id: int) -> bool:
    cur.execute(f"SELECT 1 FROM {table} WHERE id = ?", (row_id,))
    return cur.fetchone() is not None

# ---------- Schema ----------

SCHEMA = {
    "users": """
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            full_name TEXT NOT NULL DEFAULT '',
            role TEXT NOT NULL DEFAULT 'trainee'
        )
    """,
    "trainers": """
        CREATE TABLE trainers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            department TEXT NOT NULL,
            specialty TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id)
        )
    """,
    "sessions": """
        CREATE TABLE sessions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            trainer_id INTEGER NOT NULL,
            date TEXT NOT NULL,
            description TEXT NOT NULL,
            FOREIGN KEY(trainer_id) REFERENCES trainers(id)
        )
    """,
    "feedback": """
        CREATE TABLE feedback (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id INTEGER NOT NULL,
            trainee_id INTEGER NOT NULL,
            overall_rating INTEGER NOT NULL,
            knowledge_rating INTEGER NOT NULL,
            communication_rating INTEGER NOT NULL,
            materials_rating INTEGER NOT NULL,
            engagement_rating INTEGER NOT NULL,
            comments TEXT,
            strengths TEXT,
            improvements TEXT,
            sentiment_score INTEGER,
            created_at TEXT NOT NULL,
            FOREIGN KEY(session_id) REFERENCES sessions(id),
            FOREIGN KEY(trainee_id) REFERENCES users(id)
        )
    """,
}

# Columns added after the first release: table -> {column: DDL type}
LATE_COLUMNS = {
    "users": {
        "full_name": "TEXT NOT NULL DEFAULT ''",
        "role": "TEXT NOT NULL DEFAULT 'trainee'",
    },
    "feedback": {
        "strengths": "TEXT",
        "improvements": "TEXT",
        "sentiment_score": "INTEGER",
    },
}

# ---------- Migration ----------

def _missing_columns(cur: sqlite3.Cursor) -> List[Tuple[str, str, str]]:
    missing = []
    for table, cols in LATE_COLUMNS.items():
        if not _table_exists(cur, table):
            continue
        have = set(_colnames(cur, table))
        for name, ddl in cols.items():
            if name not in have:
                missing.append((table, name, ddl))
    return missing

def _needs_migration(cur: sqlite3.Cursor) -> bool:
    return bool(_missing_columns(cur))

def _migrate(cur: sqlite3.Cursor):
    """
    Bring legacy tables up to the current shape by adding missing columns.
    Old feedback rows keep a NULL sentiment_score: scores are only ever
    computed when feedback is created.
    """
    for table, name, ddl in _missing_columns(cur):
        logger.info(f"Migrating {table}: adding column {name}")
        cur.execute(f"ALTER TABLE {table} ADD COLUMN {name} {ddl}")

def init_db():
    con = _connect()
    with _LOCK:
        cur = con.cursor()

        # Parents first so foreign keys resolve
        for table in ("users", "trainers", "sessions", "feedback"):
            if not _table_exists(cur, table):
                cur.execute(SCHEMA[table])
                logger.info(f"Created table {table}")

        if _needs_migration(cur):
            _migrate(cur)

        con.commit()
    logger.debug(f"Database ready at {_DB_PATH}")

# ---------- Users ----------

USER_UPDATABLE = ("username", "password", "full_name", "role")

def get_user(user_id: int) -> Optional[User]:
    row = _one("SELECT * FROM users WHERE id = ?", (user_id,))
    return User.from_row(row) if row else None

def get_user_by_username(username: str) -> Optional[User]:
    row = _one("SELECT * FROM users WHERE username = ?", (username,))
    return User.from_row(row) if row else None

def get_users_by_role(role: str) -> List[User]:
    rows = _all("SELECT * FROM users WHERE role = ? ORDER BY id", (role,))
    return [User.from_row(r) for r in rows]

def create_user(new_user: NewUser) -> User:
    """Insert a user. `new_user.password` must already be hashed."""
    con = _connect()
    with _LOCK:
        cur = con.cursor()
        cur.execute("""
            INSERT INTO users (username, password, full_name, role)
            VALUES (?, ?, ?, ?)
        """, (new_user.username, new_user.password, new_user.full_name, new_user.role))
        user_id = cur.lastrowid
        con.commit()
    return get_user(user_id)

def _update(table: str, allowed, row_id: int, updates: dict):
    fields = {k: v for k, v in updates.items() if k in allowed}
    if not fields:
        return
    con = _connect()
    assignments = ", ".join(f"{k} = ?" for k in fields)
    with _LOCK:
        con.execute(f"UPDATE {table} SET {assignments} WHERE id = ?", (*fields.values(), row_id))
        con.commit()

def update_user(user_id: int, updates: dict) -> Optional[User]:
    _update("users", USER_UPDATABLE, user_id, updates)
    return get_user(user_id)

# ---------- Trainers ----------

TRAINER_UPDATABLE = ("department", "specialty")

def get_trainer(trainer_id: int) -> Optional[Trainer]:
    row = _one("SELECT * FROM trainers WHERE id = ?", (trainer_id,))
    return Trainer.from_row(row) if row else None

def get_trainer_by_user_id(user_id: int) -> Optional[Trainer]:
    row = _one("SELECT * FROM trainers WHERE user_id = ? ORDER BY id LIMIT 1", (user_id,))
    return Trainer.from_row(row) if row else None

def create_trainer(new_trainer: NewTrainer) -> Trainer:
    con = _connect()
    with _LOCK:
        cur = con.cursor()
        if not _exists(cur, "users", new_trainer.user_id):
            raise LookupError(f"User id {new_trainer.user_id} not found in 'users' at {_DB_PATH}")
        cur.execute("""
            INSERT INTO trainers (user_id, department, specialty)
            VALUES (?, ?, ?)
        """, (new_trainer.user_id, new_trainer.department, new_trainer.specialty))
        trainer_id = cur.lastrowid
        con.commit()
    return get_trainer(trainer_id)

def update_trainer(trainer_id: int, updates: dict) -> Optional[Trainer]:
    _update("trainers", TRAINER_UPDATABLE, trainer_id, updates)
    return get_trainer(trainer_id)

def get_all_trainers() -> List[Trainer]:
    rows = _all("SELECT * FROM trainers ORDER BY id")
    return [Trainer.from_row(r) for r in rows]

# ---------- Sessions ----------

def get_session(session_id: int) -> Optional[TrainingSession]:
    row = _one("SELECT * FROM sessions WHERE id = ?", (session_id,))
    return TrainingSession.from_row(row) if row else None

def create_session(new_session: NewSession) -> TrainingSession:
    con = _connect()
    with _LOCK:
        cur = con.cursor()
        if not _exists(cur, "trainers", new_session.trainer_id):
            raise LookupError(f"Trainer id {new_session.trainer_id} not found in 'trainers' at {_DB_PATH}")
        cur.execute("""
            INSERT INTO sessions (title, trainer_id, date, description)
            VALUES (?, ?, ?, ?)
        """, (new_session.title, new_session.trainer_id, new_session.date or _now(), new_session.description))
        session_id = cur.lastrowid
        con.commit()
    return get_session(session_id)

def get_sessions_by_trainer_id(trainer_id: int) -> List[TrainingSession]:
    rows = _all("SELECT * FROM sessions WHERE trainer_id = ? ORDER BY id", (trainer_id,))
    return [TrainingSession.from_row(r) for r in rows]

def get_all_sessions() -> List[TrainingSession]:
    rows = _all("SELECT * FROM sessions ORDER BY id")
    return [TrainingSession.from_row(r) for r in rows]

# ---------- Feedback ----------

def get_feedback(feedback_id: int) -> Optional[Feedback]:
    row = _one("SELECT * FROM feedback WHERE id = ?", (feedback_id,))
    return Feedback.from_row(row) if row else None

def create_feedback(new_feedback: NewFeedback) -> Feedback:
    """
    Insert feedback. The sentiment score is computed here, once, from the raw
    comment ("" when there is none) and never recomputed afterwards.
    """
    con = _connect()
    with _LOCK:
        cur = con.cursor()
        if not _exists(cur, "sessions", new_feedback.session_id):
            raise LookupError(f"Session id {new_feedback.session_id} not found in 'sessions' at {_DB_PATH}")
        if not _exists(cur, "users", new_feedback.trainee_id):
            raise LookupError(f"User id {new_feedback.trainee_id} not found in 'users' at {_DB_PATH}")

        sentiment_score = compute_sentiment_score(new_feedback.comments or "")
        cur.execute("""
            INSERT INTO feedback (session_id, trainee_id, overall_rating, knowledge_rating,
                                  communication_rating, materials_rating, engagement_rating,
                                  comments, strengths, improvements, sentiment_score, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            new_feedback.session_id, new_feedback.trainee_id,
            new_feedback.overall_rating, new_feedback.knowledge_rating,
            new_feedback.communication_rating, new_feedback.materials_rating,
            new_feedback.engagement_rating,
            new_feedback.comments,
            json.dumps(new_feedback.strengths or []),
            json.dumps(new_feedback.improvements or []),
            sentiment_score,
            _now(),
        ))
        feedback_id = cur.lastrowid
        con.commit()
    logger.info(f"Feedback {feedback_id} stored for session {new_feedback.session_id} (sentiment={sentiment_score})")
    return get_feedback(feedback_id)

def get_feedback_by_session_id(session_id: int) -> List[Feedback]:
    rows = _all("SELECT * FROM feedback WHERE session_id = ? ORDER BY id", (session_id,))
    return [Feedback.from_row(r) for r in rows]

def get_feedback_by_trainer_id(trainer_id: int) -> List[Feedback]:
    rows = _all("""
        SELECT f.* FROM feedback f
        JOIN sessions s ON s.id = f.session_id
        WHERE s.trainer_id = ?
        ORDER BY f.id
    """, (trainer_id,))
    return [Feedback.from_row(r) for r in rows]

def get_feedback_by_trainee_id(trainee_id: int) -> List[Feedback]:
    rows = _all("SELECT * FROM feedback WHERE trainee_id = ? ORDER BY id", (trainee_id,))
    return [Feedback.from_row(r) for r in rows]

def get_all_feedback() -> List[Feedback]:
    rows = _all("SELECT * FROM feedback ORDER BY id")
    return [Feedback.from_row(r) for r in rows]
