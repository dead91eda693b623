import sys

from agridoctor.core.database import Base, SessionLocal, engine
from agridoctor.core.security import get_password_hash
from agridoctor.models.models import User  # also registers every table on Base


# Create the tables
def create_db_tables(bind=None):
    Base.metadata.create_all(bind or engine)
    print("Database tables created!")


def create_admin(db, email: str, name: str, password: str) -> User:
    """Create an admin account, or promote the existing account with that email."""
    email_lower = email.lower()
    user = db.query(User).filter(User.email == email_lower).first()
    if user:
        user.role = "admin"
        print(f"Promoted {email_lower} to admin")
    else:
        user = User(email=email_lower, name=name, password=get_password_hash(password), role="admin")
        db.add(user)
        print(f"Admin created: {email_lower}")
    db.commit()
    db.refresh(user)
    return user


USAGE = (
    "Usage:\n"
    "  python -m agridoctor.create_tables create_tables\n"
    "  python -m agridoctor.create_tables create_admin <email> <name> <password>"
)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if argv[:1] == ["create_tables"]:
        create_db_tables()
    elif argv[:1] == ["create_admin"] and len(argv) == 4:
        create_db_tables()
        db = SessionLocal()
        try:
            create_admin(db, *argv[1:])
        finally:
            db.close()
    else:
        print(USAGE)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
