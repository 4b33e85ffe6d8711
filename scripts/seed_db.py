"""Load demo users, categories and todos.

Every demo user logs in with ``password123``. Todos get random creation
times over the last 60 days and random due dates, so the statistics pages
have something to show.

Usage:
    uv run python scripts/seed_db.py            # add demo data
    uv run python scripts/seed_db.py --reset    # wipe all tables first
    uv run python scripts/seed_db.py --seed 42  # reproducible dates
"""

from __future__ import annotations

import argparse
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from todo_api.core.security import hash_password  # noqa: E402
from todo_api.db.postgres import PostgresDB  # noqa: E402

DEMO_PASSWORD = "password123"

USERS = [
    ("johndoe", "john@example.com", "John", "Doe"),
    ("janedoe", "jane@example.com", "Jane", "Doe"),
    ("bobsmith", "bob@example.com", "Bob", "Smith"),
    ("alicejohnson", "alice@example.com", "Alice", "Johnson"),
]

CATEGORIES = {
    "Work": ("Work-related tasks", "#007bff"),
    "Personal": ("Personal tasks and goals", "#28a745"),
    "Shopping": ("Shopping lists and errands", "#ffc107"),
    "Health": ("Health and fitness goals", "#dc3545"),
    "Learning": ("Educational and skill development", "#6f42c1"),
    "Home": ("Household tasks and maintenance", "#fd7e14"),
}

# (title, description, priority, user index, category or None, completed)
TODOS = [
    ("Complete project proposal", "Finish the Q1 project proposal for the new client", "high", 0, "Work", True),
    ("Review code submissions", "Review pull requests from the development team", "medium", 0, "Work", False),
    ("Attend team meeting", "Weekly team standup meeting at 10 AM", "medium", 1, "Work", False),
    ("Update documentation", "Update API documentation with latest changes", "low", 2, "Work", False),
    ("Call mom", "Weekly check-in call with mom", "high", 1, "Personal", False),
    ("Book dentist appointment", "Schedule regular dental cleaning", "medium", 1, "Personal", True),
    ("Plan weekend trip", "Research and plan weekend getaway", "low", 3, "Personal", False),
    ("Buy groceries", "Weekly grocery shopping - need milk, bread, eggs", "medium", 2, "Shopping", False),
    ("Get birthday gift", "Buy birthday present for Sarah", "high", 3, "Shopping", False),
    ("Replace broken phone charger", "Buy new USB-C charger for phone", "medium", 0, "Shopping", True),
    ("Morning jog", "30-minute jog around the neighborhood", "medium", 2, "Health", True),
    ("Schedule annual checkup", "Book appointment with primary care doctor", "high", 0, "Health", False),
    ("Try new yoga class", "Attend beginners yoga class at local studio", "low", 3, "Health", False),
    ("Complete Python course", "Finish the remaining 5 modules of the Python course", "medium", 1, "Learning", False),
    ("Read programming book", 'Read next chapter of "Clean Code"', "low", 2, "Learning", False),
    ("Practice guitar", "Practice guitar for 30 minutes", "low", 3, "Learning", True),
    ("Fix leaky faucet", "Repair the dripping kitchen faucet", "high", 0, "Home", False),
    ("Clean garage", "Organize and clean out the garage", "low", 1, "Home", False),
    ("Plant flowers", "Plant spring flowers in the front garden", "medium", 2, "Home", False),
    ("Check email", "Go through and organize email inbox", "low", 0, None, True),
    ("Write journal entry", "Daily reflection and journaling", "low", 1, None, False),
    ("Backup computer files", "Create backup of important documents and photos", "medium", 3, None, False),
]


def reset(db: PostgresDB) -> None:
    with db.session() as conn:
        conn.execute("TRUNCATE todos, categories, users RESTART IDENTITY CASCADE")
    print("Cleared users, categories and todos")


def seed(db: PostgresDB, rng: random.Random) -> None:
    password_hash = hash_password(DEMO_PASSWORD)
    user_ids = []
    for username, email, first_name, last_name in USERS:
        user = db.create_user(username, email, password_hash, first_name, last_name)
        user_ids.append(user["id"])
        print(f"Created user: {username}")

    # Categories are per user; create each one the first time an owner needs it.
    category_ids: dict[tuple[int, str], int] = {}
    for _, _, _, user_index, category, _ in TODOS:
        key = (user_ids[user_index], category)
        if category is None or key in category_ids:
            continue
        description, color = CATEGORIES[category]
        category_ids[key] = db.create_category(key[0], category, description, color)["id"]
        print(f"Created category: {category} (user {key[0]})")

    now = datetime.now()
    with db.session() as conn:
        for title, description, priority, user_index, category, completed in TODOS:
            user_id = user_ids[user_index]
            due_date = None
            if rng.random() > 0.5:
                due_date = now + timedelta(days=rng.randint(-10, 19))
            created_at = now - timedelta(days=rng.randint(0, 59))
            conn.execute(
                """
                INSERT INTO todos (title, description, priority, due_date, user_id,
                                   category_id, completed, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    title,
                    description,
                    priority,
                    due_date,
                    user_id,
                    category_ids.get((user_id, category)),
                    completed,
                    created_at,
                    created_at,
                ),
            )
            print(f"Created todo: {title}")

    print(
        f"\nCreated {len(USERS)} users, {len(category_ids)} categories "
        f"and {len(TODOS)} todos"
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the database with demo data")
    parser.add_argument("--reset", action="store_true", help="Delete existing rows first")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for dates")
    args = parser.parse_args()

    db = PostgresDB()
    if args.reset:
        reset(db)
    seed(db, random.Random(args.seed))
    print(f"Demo users log in with password '{DEMO_PASSWORD}'")


if __name__ == "__main__":
    main()
