#!/usr/bin/env python3
"""
Demo Data Seed Script
Creates officers, owners and livestock for local use of the DigiStock API.

Usage:
    python -m scripts.seed_demo [province]

Example:
    python -m scripts.seed_demo Harare
"""
import sys
import os
from datetime import date
from uuid import uuid4

# Add the parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from digistock.database import SessionLocal, init_db
from digistock.models.db_models import LivestockDB, OfficerDB, OfficerRole, OwnerDB
from digistock.auth import create_access_token

OFFICERS = [
    ("POL-001", "Tendai", "Moyo", OfficerRole.POLICE_OFFICER),
    ("AGX-001", "Rudo", "Ncube", OfficerRole.AGRITEX_OFFICER),
    ("ADM-001", "Farai", "Dube", OfficerRole.ADMIN),
]

OWNERS = [
    ("63-123456-A-12", "Chipo", "Mutasa"),
    ("63-654321-B-34", "Tatenda", "Sibanda"),
]

LIVESTOCK = [
    ("ZW-0001", "Bella", "Mashona", "F"),
    ("ZW-0002", "Duke", "Brahman", "M"),
    ("ZW-0003", "Spot", "Tuli", "F"),
]


def seed(province: str) -> bool:
    """Insert demo records; rerunning skips records that already exist."""
    # Ensure tables exist
    init_db()

    db: Session = SessionLocal()
    try:
        officers = []
        for code, first, last, role in OFFICERS:
            officer = db.query(OfficerDB).filter(OfficerDB.officer_code == code).first()
            if officer is None:
                officer = OfficerDB(
                    id=str(uuid4()),
                    officer_code=code,
                    first_name=first,
                    last_name=last,
                    role=role,
                    province=province,
                    active=True,
                )
                db.add(officer)
            officers.append(officer)

        owners = []
        for national_id, first, last in OWNERS:
            owner = db.query(OwnerDB).filter(OwnerDB.national_id == national_id).first()
            if owner is None:
                owner = OwnerDB(
                    id=str(uuid4()),
                    national_id=national_id,
                    first_name=first,
                    last_name=last,
                    province=province,
                )
                db.add(owner)
            owners.append(owner)
        db.flush()

        for i, (tag, name, breed, sex) in enumerate(LIVESTOCK):
            if db.query(LivestockDB).filter(LivestockDB.tag_code == tag).first() is None:
                db.add(LivestockDB(
                    id=str(uuid4()),
                    tag_code=tag,
                    name=name,
                    breed=breed,
                    sex=sex,
                    birth_date=date(2022, 1 + i, 1),
                    owner_id=owners[i % len(owners)].id,
                ))

        db.commit()

        print("Demo data seeded successfully!")
        for officer in officers:
            print(f"  {officer.role.value:<16} {officer.officer_code}  X-Officer-Id: {officer.id}")
            print(f"  {'':<16} token: {create_access_token(officer.id, officer.role.value)}")
        for owner in owners:
            print(f"  OWNER            {owner.national_id}  id: {owner.id}")
        return True

    except Exception as e:
        print(f"Error seeding demo data: {e}")
        db.rollback()
        return False
    finally:
        db.close()


def main():
    if len(sys.argv) > 2:
        print(__doc__)
        sys.exit(1)

    province = sys.argv[1] if len(sys.argv) == 2 else "Harare"

    success = seed(province)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
