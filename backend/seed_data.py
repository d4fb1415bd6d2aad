# backend/seed_data.py
import logging

from database.connection import Base, SessionLocal, engine
from database.models import Booking, Doctor, Prescription, User

logger = logging.getLogger(__name__)


USERS = [
    {"username": "Rahul Kumar", "number": "9876543210", "country_code": "+91", "email": "rahul@example.com"},
    {"username": "Priya Sharma", "number": "9876543211", "country_code": "+91", "email": "priya@example.com"},
    {"username": "Alex Morgan", "number": "4155550123", "country_code": "+1", "email": "alex@example.com"},
]

DOCTORS = [
    {
        "name": "Anjali Mehta",
        "number": "9811111111",
        "email": "dr.mehta@example.com",
        "speciality": "General Physician",
        "experience": "12 years",
        "availability": {"monday": ["09:00", "09:30", "10:00"], "wednesday": ["17:00", "17:30"]},
    },
    {
        "name": "Vikram Rao",
        "number": "9822222222",
        "email": "dr.rao@example.com",
        "speciality": "Dermatology",
        "experience": "8 years",
        "availability": {"tuesday": ["11:00", "11:30"], "friday": ["15:00"]},
    },
]


def seed_data(db, reset: bool = False) -> dict:
    """Insert demo users and doctors. Existing rows are kept unless ``reset``."""
    existing_users = db.query(User).count()
    if existing_users and not reset:
        logger.warning("Database already has %s users, skipping seeding", existing_users)
        return {"users": 0, "doctors": 0}

    if reset:
        logger.info("Clearing existing data")
        db.query(Prescription).delete()
        db.query(Booking).delete()
        db.query(Doctor).delete()
        db.query(User).delete()
        db.commit()

    db.add_all(User(**data) for data in USERS)
    db.add_all(Doctor(**data) for data in DOCTORS)
    db.commit()

    logger.info("Seeded %s users and %s doctors", len(USERS), len(DOCTORS))
    return {"users": len(USERS), "doctors": len(DOCTORS)}


if __name__ == "__main__":
    import argparse

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Seed demo users and doctors")
    parser.add_argument("--reset", action="store_true", help="delete existing bookings, doctors and users first")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_data(session, reset=args.reset)
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
