"""
Initialize database schema.

Run ONCE when:
- first local setup
- new environment deployment

    python -m paperinsight.scripts.init_db
"""

from paperinsight.database.db.models import Base
from paperinsight.database.db.session import get_engine


def main():
    print("🔧 Initializing database schema...")
    Base.metadata.create_all(bind=get_engine())
    print("✅ Database schema initialized.")


if __name__ == "__main__":
    main()
