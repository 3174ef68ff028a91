from luckydraw.db.engine import get_sessionmaker, make_engine
from luckydraw.models import Base
from luckydraw.workflows import reset_event


def main() -> None:
    """Reset the development database to the stock event."""
    engine = make_engine()

    # Drop and recreate all tables so schema tweaks take effect.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    with Session.begin() as session:
        reset_event(session)

    print("Seeded default prizes and settings.")


if __name__ == "__main__":
    main()
