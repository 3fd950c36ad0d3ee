# seed.py
# Creates the admin account from ADMIN_EMAIL / ADMIN_PASSWORD.
# Re-running resets the password of an existing account.
import os
import sys

from sqlalchemy.exc import OperationalError

from app import create_app
from models import AdminUser, db


def seed_admin(email: str, password: str) -> AdminUser:
    email = (email or "").strip().lower()
    user = AdminUser.query.filter_by(email=email).first()
    if user is None:
        user = AdminUser(email=email)
        db.session.add(user)
    user.set_password(password)
    db.session.commit()
    return user


if __name__ == "__main__":
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password or len(password) < 6:
        sys.exit("Set ADMIN_EMAIL and ADMIN_PASSWORD (min 6 characters) before seeding.")

    app = create_app()
    with app.app_context():
        try:
            AdminUser.query.first()
        except OperationalError:
            db.session.rollback()
            db.create_all()
        user = seed_admin(email, password)
        print(f"Seed complete: admin {user.email}")
