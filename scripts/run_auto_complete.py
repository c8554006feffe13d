"""
Manual auto-complete run for overdue appointments.

NOTE: Automatic runs are handled by AutoCompleteScheduler (every 4 hours and
daily at 00:01). This script is provided for:
- Manual/emergency runs after downtime
- Testing the sweep in development

Usage: python scripts/run_auto_complete.py [--dry-run]
"""
import sys
import os

# Add the parent directory to sys.path to allow imports from src
sys.path.append(os.path.join(os.path.dirname(__file__), '../src'))

from core.database import SessionLocal
from services.auto_complete_service import auto_complete_appointments, count_pending


def main():
    dry_run = "--dry-run" in sys.argv[1:]
    print("Starting auto-complete run...")
    db = SessionLocal()
    try:
        pending = count_pending(db)
        print(f"{pending} overdue appointment(s) pending completion.")
        if dry_run:
            print("Dry run: nothing changed.")
            return

        total = 0
        while True:
            completed = auto_complete_appointments(db)
            total += completed
            if completed == 0:
                break
        print(f"Completed {total} appointment(s).")
    except Exception as e:
        print(f"Error during auto-complete run: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
