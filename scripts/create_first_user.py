import sys
import os
from sqlmodel import Session, select

# Add current directory to path
sys.path.append(os.getcwd())

from app.db.session import engine, init_db
from app.models.user import User, UserRole
from app.core.security import get_password_hash


def create_initial_user():
    print("--- Initial Admin Creation ---")

    email = os.environ.get("FIRST_ADMIN_EMAIL", "admin@example.com").lower()
    password = os.environ.get("FIRST_ADMIN_PASSWORD", "adminpassword")
    name = "Super Admin"

    # Accounts are only created by admins, so the first one has to be seeded
    init_db()

    with Session(engine) as session:
        user = session.exec(select(User).where(User.email == email)).first()

        if user:
            print(f"User with email {email} already exists.")
            return

        print(f"Creating user {email}...")
        db_user = User(
            email=email,
            password=get_password_hash(password),
            name=name,
            designation="Administrator",
            roles=[UserRole.ADMIN.value],
        )
        session.add(db_user)
        session.commit()
        print("Initial admin created successfully!")
        print(f"Email: {email}")
        print(f"Password: {password}")


if __name__ == "__main__":
    create_initial_user()
