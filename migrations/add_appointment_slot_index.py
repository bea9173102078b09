"""
Add the partial unique index that makes a barber's slot exclusive

Migration to add:
- uq_appointments_barber_slot on appointments (barber_id, scheduled_at)
  for every appointment that is not cancelled

Databases created by the app already have it; this is for databases
created before the index existed. Duplicate live bookings must be
resolved first, the migration lists them and stops.

Run with: python migrations/add_appointment_slot_index.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text

from barberbook.database import engine


def find_double_bookings(conn):
    return conn.execute(
        text("""
            SELECT barber_id, scheduled_at, COUNT(*) AS total
            FROM appointments
            WHERE status <> 'cancelled'
            GROUP BY barber_id, scheduled_at
            HAVING COUNT(*) > 1
        """)
    ).fetchall()


def upgrade():
    """Create uq_appointments_barber_slot"""
    with engine.connect() as conn:
        duplicates = find_double_bookings(conn)
        if duplicates:
            for row in duplicates:
                print(f"❌ Barber {row.barber_id} has {row.total} live bookings at {row.scheduled_at}")
            print("Cancel the duplicated appointments and run the migration again")
            return False

        conn.execute(
            text("""
                CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_barber_slot
                ON appointments (barber_id, scheduled_at)
                WHERE status <> 'cancelled'
            """)
        )
        conn.commit()
        print("✅ Added uq_appointments_barber_slot index")
        return True


def downgrade():
    """Drop uq_appointments_barber_slot"""
    with engine.connect() as conn:
        conn.execute(text("DROP INDEX IF EXISTS uq_appointments_barber_slot"))
        conn.commit()
        print("✅ Dropped uq_appointments_barber_slot index")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "downgrade":
        downgrade()
    elif not upgrade():
        sys.exit(1)
