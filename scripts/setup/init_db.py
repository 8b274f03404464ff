# scripts/setup/init_db.py
"""
Initialize database: creates all tables and syncs the capacity pool.
Run once before first launch, or after changing capacity settings.
Usage: python scripts/setup/init_db.py
       python scripts/setup/init_db.py --driver DOC-123 ABC123 --first-name Juan --last-name Cruz
           --contact-number 09170000000 --vehicle-type car --vehicle-color red
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect, text
from parkgate.database import SessionLocal, create_tables, engine
from parkgate.config import settings
from parkgate.services.capacity_pool import CapacityPool
from parkgate.services.vehicle_ledger import VehicleLedger


def register_driver(args):
    with SessionLocal() as session:
        VehicleLedger().register_driver(
            session, args.driver[0], args.driver[1],
            first_name=args.first_name,
            middle_name=args.middle_name,
            last_name=args.last_name,
            contact_number=args.contact_number,
            user_type=args.user_type,
            vehicle_type=args.vehicle_type,
            vehicle_color=args.vehicle_color,
        )
        session.commit()
    print(f"✅ Driver {args.driver[0]} → plate {args.driver[1]}")


def main():
    parser = argparse.ArgumentParser(description="Initialise the ParkGate store")
    parser.add_argument("--driver", nargs=2, metavar=("DOCUMENT_ID", "PLATE"), help="Register a driver")
    parser.add_argument("--first-name")
    parser.add_argument("--middle-name")
    parser.add_argument("--last-name")
    parser.add_argument("--contact-number")
    parser.add_argument("--user-type", default="visitor")
    parser.add_argument("--vehicle-type", default="car")
    parser.add_argument("--vehicle-color")
    args = parser.parse_args()

    print("🗄️  ParkGate DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  sudo systemctl start postgresql")
        sys.exit(1)

    # Create all tables
    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    print("\n🅿️  Syncing capacity pool...")
    with SessionLocal() as session:
        for row in CapacityPool().sync(session):
            print(f"   {row['classKey']:<11} {row['occupied']:>3}/{row['capacity']:<3} ({row['available']} free)")

    if args.driver:
        register_driver(args)

    print("\n🎉 Store ready! You can now start the backend:")
    print(f"   uvicorn parkgate.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
