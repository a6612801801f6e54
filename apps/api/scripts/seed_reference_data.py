#!/usr/bin/env python3
"""
Seed reference data: staff roles, the default admin account and the
membership plan catalogue. Safe to re-run; existing rows are left alone.

Run: python scripts/seed_reference_data.py
Env: ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_NAME
"""
import os
from decimal import Decimal

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from core.database import get_db_sync
from core.security import get_password_hash
from models import MembershipPlan, Role, User

load_dotenv()

ROLES = ("admin", "staff", "trainer")

PLANS = [
    ("Monthly Basic", 1, Decimal("5000"), "Access to gym equipment"),
    ("Monthly Premium", 1, Decimal("8000"), "Gym + Classes + Sauna"),
    ("3 Months Standard", 3, Decimal("13500"), "Quarterly membership with 10% discount"),
    ("6 Months Pro", 6, Decimal("25000"), "Half-yearly commitment"),
    ("Annual Elite", 12, Decimal("45000"), "Full year access with all perks"),
]


def seed_roles(db: Session) -> dict:
    roles = {r.name: r for r in db.query(Role).all()}
    for name in ROLES:
        if name not in roles:
            roles[name] = Role(name=name)
            db.add(roles[name])
    db.flush()
    return roles


def seed_admin(db: Session, admin_role: Role) -> bool:
    email = os.getenv("ADMIN_EMAIL", "admin@gym.com")
    if db.query(User).filter(User.email == email).first():
        return False
    db.add(
        User(
            name=os.getenv("ADMIN_NAME", "Admin"),
            email=email,
            password=get_password_hash(os.getenv("ADMIN_PASSWORD", "admin@123")),
            role_id=admin_role.id,
        )
    )
    db.flush()
    return True


def seed_plans(db: Session) -> int:
    if db.query(MembershipPlan.id).first():
        return 0
    for name, months, price, description in PLANS:
        db.add(MembershipPlan(name=name, duration_months=months, price=price, description=description))
    db.flush()
    return len(PLANS)


def seed_reference_data(db: Session) -> dict:
    roles = seed_roles(db)
    return {
        "admin_created": seed_admin(db, roles["admin"]),
        "plans_created": seed_plans(db),
    }


def main():
    db = get_db_sync()
    try:
        result = seed_reference_data(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    print(f"Seeded: {result}")


if __name__ == "__main__":
    main()
