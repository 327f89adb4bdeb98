from __future__ import annotations

import sys

from estoque_let.database import Base, SessionLocal, engine
from estoque_let.services.demo_data import seed_demo_data


def main() -> None:
    if "--create-tables" in sys.argv[1:]:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        inserted = seed_demo_data(db)
        total = sum(inserted.values())
        print(f"OK: inserted {total} demo rows")
        for table, count in inserted.items():
            print(f"  {table}: {count}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
