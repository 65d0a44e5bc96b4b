"""FreshCart management CLI.

Database schema management plus the maintenance sweeps an external scheduler
runs periodically.

Usage:
    python src/manage.py setup-db                      # Create all tables
    python src/manage.py drop-db                       # Drop all tables
    python src/manage.py generate-slots --days 14      # Pre-create booking slots
    python src/manage.py expire-orders --older-than 45 # Cancel unpaid orders
    python src/manage.py sync-sales                    # Open/close scheduled sales
"""

import argparse
import sys


def _domain():
    from freshcart.domain import freshcart

    freshcart.init()
    return freshcart


def setup_database():
    from freshcart.utils.db import setup_db

    domain = _domain()
    print("Creating freshcart database schema...")
    providers = setup_db(domain)
    print(f"  schema ready ({', '.join(providers) or 'no SQL providers configured'}).")


def drop_database():
    from freshcart.utils.db import drop_db

    domain = _domain()
    print("Dropping freshcart database schema...")
    providers = drop_db(domain)
    print(f"  schema dropped ({', '.join(providers) or 'no SQL providers configured'}).")


def generate_slots(start_date=None, days=None):
    from freshcart.timeslot.management import GenerateTimeSlots

    domain = _domain()
    with domain.domain_context():
        created = domain.process(GenerateTimeSlots(start_date=start_date, days=days), asynchronous=False)
    print(f"Created {created} time slots.")


def expire_orders(older_than=None):
    from freshcart.order.expiry import expire_unpaid_orders

    domain = _domain()
    with domain.domain_context():
        expired = expire_unpaid_orders(older_than_minutes=older_than)
    print(f"Expired {expired} unpaid orders.")


def sync_sales():
    from freshcart.catalogue.scheduling import sync_sale_windows

    domain = _domain()
    with domain.domain_context():
        result = sync_sale_windows()
    print(f"Opened {result['opened']} sales, closed {result['closed']}.")


def main():
    parser = argparse.ArgumentParser(description="FreshCart management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    slots_parser = subparsers.add_parser("generate-slots", help="Pre-create pickup/delivery slots")
    slots_parser.add_argument("--start-date", help="First day (YYYY-MM-DD, default: today)")
    slots_parser.add_argument("--days", type=int, help="Number of days (default: advance_booking_days)")

    expire_parser = subparsers.add_parser("expire-orders", help="Cancel PENDING orders past their payment window")
    expire_parser.add_argument("--older-than", type=int, help="Minutes (default: pending_order_ttl_minutes)")

    subparsers.add_parser("sync-sales", help="Open due and close expired sale windows")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "generate-slots":
        generate_slots(args.start_date, args.days)
    elif args.command == "expire-orders":
        expire_orders(args.older_than)
    elif args.command == "sync-sales":
        sync_sales()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
