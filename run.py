import argparse, logging, sys

import api
import db
from auth import authenticate
from config import LOG_LEVEL, LOG_FORMAT, SEED_SAMPLE_DATA
from errors import ApiError
from metrics.ratings import average_rating, average_sentiment
from metrics.sentiment import compute_sentiment_score, count_keywords, sentiment_category
from reports import trainer_leaderboard
from seed import seed_sample_data

def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)

# --- Commands ----------------------------------------------------------------

def cmd_init_db(args) -> int:
    db.init_db()
    print(f"[init-db] schema ready at {db.db_path()}")
    if args.seed:
        seed_sample_data()
        print(f"[init-db] sample data ready • trainers={len(db.get_all_trainers())} • sessions={len(db.get_all_sessions())}")
    return 0

def cmd_score(args) -> int:
    text = " ".join(args.text)
    pos, neg = count_keywords(text)
    score = compute_sentiment_score(text)
    print(f"score={score} • category={sentiment_category(score)} • positive={pos} • negative={neg}")
    return 0

def cmd_submit(args) -> int:
    db.init_db()
    user = authenticate(args.username, args.password)
    feedback = api.submit_feedback(user, {
        "session_id": args.session_id,
        "overall_rating": args.overall,
        "knowledge_rating": args.knowledge,
        "communication_rating": args.communication,
        "materials_rating": args.materials,
        "engagement_rating": args.engagement,
        "comments": args.comments,
        "strengths": args.strength or [],
        "improvements": args.improvement or [],
    })
    score = feedback["sentiment_score"]
    print(f"[submit] feedback_id={feedback['id']} saved • session={feedback['session_id']} "
          f"• sentiment={score} ({sentiment_category(score)})")
    return 0

def cmd_report(args) -> int:
    db.init_db()
    if args.trainer_id:
        trainer = db.get_trainer(args.trainer_id)
        if trainer is None:
            print(f"[report] trainer {args.trainer_id} not found", file=sys.stderr)
            return 1
        feedback = db.get_feedback_by_trainer_id(trainer.id)
        sessions = db.get_sessions_by_trainer_id(trainer.id)
        print(f"[report] trainer={trainer.id} • sessions={len(sessions)} • feedback={len(feedback)} "
              f"• avg_rating={average_rating(feedback)} • sentiment={average_sentiment(feedback)}")
        return 0

    trainers = []
    for t in db.get_all_trainers():
        user = db.get_user(t.user_id)
        row = t.to_dict()
        row["full_name"] = user.full_name if user else None
        trainers.append(row)
    board = trainer_leaderboard(db.get_all_feedback(), db.get_all_sessions(), trainers)
    if board.empty:
        print("[report] no trainers yet")
        return 0
    print(board.to_string(index=False))
    return 0

# --- Entry point -------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Trainer feedback tracker")
    ap.add_argument("--db", default=None, help="SQLite file (overrides DB_PATH)")
    ap.add_argument("--log-level", default=LOG_LEVEL)
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="create or migrate the schema")
    p.add_argument("--seed", action="store_true", default=SEED_SAMPLE_DATA,
                   help="create demo users, trainers and sessions")
    p.add_argument("--no-seed", dest="seed", action="store_false")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("score", help="score a comment without storing it")
    p.add_argument("text", nargs="*", default=[])
    p.set_defaults(func=cmd_score)

    p = sub.add_parser("submit", help="submit feedback as a trainee")
    p.add_argument("--username", required=True)
    p.add_argument("--password", required=True)
    p.add_argument("--session-id", type=int, required=True)
    for name in ["overall", "knowledge", "communication", "materials", "engagement"]:
        p.add_argument(f"--{name}", type=int, required=True, choices=range(1, 6), metavar="1-5")
    p.add_argument("--comments", default=None)
    p.add_argument("--strength", action="append")
    p.add_argument("--improvement", action="append")
    p.set_defaults(func=cmd_submit)

    p = sub.add_parser("report", help="print trainer performance")
    p.add_argument("--trainer-id", type=int, default=None)
    p.set_defaults(func=cmd_report)
    return ap

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    if args.db:
        db.reset_connection(args.db)
    try:
        return args.func(args)
    except ApiError as e:
        print(f"[error] {e.status} {e.message}" + (f" • {e.details}" if e.details else ""), file=sys.stderr)
        return 1

if __name__ == "__main__":
    sys.exit(main())
