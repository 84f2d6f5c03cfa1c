import os
import sys

from app import create_app
from app.extensions import db
from app.models import User
from app.utils.passwords import hash_password, validate_password

EMAIL = (os.getenv("ADMIN_EMAIL") or "").strip().lower()
PASSWORD = os.getenv("ADMIN_PASSWORD") or ""
NAME = os.getenv("ADMIN_NAME") or "Back Office Admin"

if not EMAIL or not PASSWORD:
    sys.exit("Set ADMIN_EMAIL and ADMIN_PASSWORD before running this script.")

ok, message = validate_password(PASSWORD)
if not ok:
    sys.exit(f"Password rejected: {message}")

app = create_app()

with app.app_context():
    user = User.query.filter(db.func.lower(User.email) == EMAIL).first()

    if user:
        print("🔁 Updating existing admin:", EMAIL)
        user.password_hash = hash_password(PASSWORD)
        user.role = "admin"
        user.is_active = True
    else:
        print("🔐 Creating new admin user...")
        user = User(name=NAME, email=EMAIL, role="admin", password_hash=hash_password(PASSWORD))
        db.session.add(user)

    db.session.commit()
    print("✅ Admin ready:", EMAIL)
