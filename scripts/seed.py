from streamsurf.db.session import engine, Session, init_db
from streamsurf.db.seed import DEFAULT_SEED_PATH, seed_all


def run_seed():
    init_db()
    with Session(engine) as session:
        seed_all(session=session, seed_path=DEFAULT_SEED_PATH)


if __name__ == "__main__":
    run_seed()
