#!/usr/bin/env python
"""Seed script for a local demo database.

Creates two organizations, one user per role and a handful of orders spread
across the pipeline, then prints a bearer token for each user. Run the
migrations first (``alembic upgrade head`` from backend/).

Usage:
    pip install -e .
    python backend/scripts/seed_demo.py

Environment Variables:
    DATABASE_URL: Database connection string
    JWT_SECRET: Signing secret for the printed tokens
"""

import sys
from datetime import datetime, timedelta, timezone

from colorgarb.auth.jwt import create_access_token
from colorgarb.database import SessionLocal
from colorgarb.domain.orders.stages import OrderStage
from colorgarb.models import Organization, OrderModel, User

DEMO_ORGANIZATIONS = ["Lincoln High Marching Band", "Riverside Dance Company"]

DEMO_STAGES = [
    OrderStage.DESIGN_PROPOSAL,
    OrderStage.MEASUREMENTS,
    OrderStage.CUTTING,
    OrderStage.SEWING,
    OrderStage.QUALITY_CONTROL,
]


def main():
    """Create demo organizations, users and orders."""
    session = SessionLocal()

    try:
        if session.query(Organization).filter(Organization.name.in_(DEMO_ORGANIZATIONS)).first():
            print("ERROR: Demo organizations already exist; use a fresh database")
            sys.exit(1)

        organizations = [Organization(name=name) for name in DEMO_ORGANIZATIONS]
        session.add_all(organizations)
        session.flush()

        users = [User(email="staff@colorgarb.com", name="ColorGarb Staff", role="ColorGarbStaff")]
        for org in organizations:
            domain = org.name.split()[0].lower()
            users.append(User(email=f"director@{domain}.org", name=f"{org.name} Director",
                              role="Director", organization_id=org.id))
            users.append(User(email=f"finance@{domain}.org", name=f"{org.name} Finance",
                              role="Finance", organization_id=org.id))
        session.add_all(users)

        ship_date = datetime.now(timezone.utc).replace(hour=12, minute=0, second=0, microsecond=0) + timedelta(days=90)
        number = 0
        for org in organizations:
            for stage in DEMO_STAGES:
                number += 1
                session.add(OrderModel(
                    order_number=f"CG-{ship_date.year}-{number:04d}",
                    organization_id=org.id,
                    description=f"{stage.label} sample order",
                    current_stage=stage.value,
                    original_ship_date=ship_date,
                    current_ship_date=ship_date,
                ))

        session.commit()

        print(f"✓ Created {len(organizations)} organizations, {len(users)} users, {number} orders")
        print()
        for user in users:
            token = create_access_token(
                user_id=user.id,
                role=user.role,
                org_id=user.organization_id,
                email=user.email,
            )
            print(f"{user.role:<15} {user.email}")
            print(f"  Authorization: Bearer {token}")

    except Exception as e:
        session.rollback()
        print(f"ERROR: Failed to seed demo data: {e}")
        sys.exit(1)

    finally:
        session.close()


if __name__ == "__main__":
    main()
