"""
Add the partial unique index that allows one live subscription per establishment

Migration to add:
- uq_subscriptions_user_establishment_live on subscriptions (user_id, establishment_id)
  for every subscription that is active or in free trial

Databases created by the app already have it. Users holding more than one
live subscription at an establishment must be resolved first, the migration
lists them and stops.

Run with: python migrations/add_subscription_live_index.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text

from barberbook.database import engine


def find_duplicate_subscriptions(conn):
    return conn.execute(
        text("""
            SELECT user_id, establishment_id, COUNT(*) AS total
            FROM subscriptions
            WHERE status IN ('active', 'free_trial')
            GROUP BY user_id, establishment_id
            HAVING COUNT(*) > 1
        """)
    ).fetchall()


def upgrade():
    """Create uq_subscriptions_user_establishment_live"""
    with engine.connect() as conn:
        duplicates = find_duplicate_subscriptions(conn)
        if duplicates:
            for row in duplicates:
                print(
                    f"❌ User {row.user_id} has {row.total} live subscriptions "
                    f"at establishment {row.establishment_id}"
                )
            print("Cancel the older subscriptions and run the migration again")
            return False

        conn.execute(
            text("""
                CREATE UNIQUE INDEX IF NOT EXISTS uq_subscriptions_user_establishment_live
                ON subscriptions (user_id, establishment_id)
                WHERE status IN ('active', 'free_trial')
            """)
        )
        conn.commit()
        print("✅ Added uq_subscriptions_user_establishment_live index")
        return True


def downgrade():
    """Drop uq_subscriptions_user_establishment_live"""
    with engine.connect() as conn:
        conn.execute(text("DROP INDEX IF EXISTS uq_subscriptions_user_establishment_live"))
        conn.commit()
        print("✅ Dropped uq_subscriptions_user_establishment_live index")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "downgrade":
        downgrade()
    elif not upgrade():
        sys.exit(1)
