#!/usr/bin/env python3
"""
Environment setup for the Roster Board API.
Writes a starter .env with a fresh token secret and the working-day defaults.
"""

import secrets
import string
import os


def generate_secret_key(length=64):
    """Generate a random secret key."""
    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def main():
    print("🚀 Setting up Roster Board API...\n")

    if os.path.exists('.env'):
        print("⚠️  .env file already exists. Do you want to overwrite it? (y/n): ", end="")
        response = input().lower().strip()
        if response != 'y':
            print("❌ Setup cancelled.")
            return

    secret_key = generate_secret_key(64)

    env_content = f"""# Roster Board environment variables
DATABASE_URL=sqlite:///./roster.db
LOG_LEVEL=INFO

# Bearer tokens from the identity provider are verified with this key;
# remove it to disable verification locally
SECRET_KEY={secret_key}
ALGORITHM=HS256
MANAGER_ROLE=manager

# Capacity view
WORKDAY_START=06:00
WORKDAY_NOON=12:00
WORKDAY_END=19:00
CAPACITY_BUFFER_MINUTES=90

# Sync client
ROSTER_API_URL=http://localhost:8000
DEBOUNCE_SECONDS=0.5

# Google Calendar import (service account)
GOOGLE_CLIENT_EMAIL=
GOOGLE_PRIVATE_KEY=
GOOGLE_CALENDAR_ID=
CALENDAR_TIMEZONE=Europe/Prague
"""

    with open('.env', 'w') as f:
        f.write(env_content)

    print("✅ Environment setup completed!")
    print(f"🔑 Secret key generated: {secret_key[:20]}...")

    print("\n📋 Next steps:")
    print("1. Install the package: pip install -e .[test]")
    print("2. Fill in the GOOGLE_* values if you use the calendar import")
    print("3. Run the application: python run.py")
    print("4. Open http://localhost:8000/docs in your browser")

    print("\n🎯 API Endpoints:")
    print("   • Rows: GET/POST /rows/, PATCH/DELETE /rows/{id}")
    print("   • Days: GET/PUT/DELETE /days/{date_key}")
    print("   • Capacity: GET /capacity/?date_key=")
    print("   • Staff view: GET /staff/{date_key}")
    print("   • Calendar import: POST /calendar/import?date_key=")
    print("   • Health: GET /health")


if __name__ == "__main__":
    main()
