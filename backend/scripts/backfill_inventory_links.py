"""
One-off backfill of expenses.inventory_item_id.

Older expenses carried their inventory link as an ``inventory_item_id:<id>``
token inside the description. This copies that id into the column for every
expense that does not have it yet; running it again changes nothing.

Usage:
    python scripts/backfill_inventory_links.py
"""
import sys
import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Add the parent directory to sys.path to allow imports from backend
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import SessionLocal
from crud.expenses import backfill_inventory_links
from exceptions import LedgerError

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("backfill")


def backfill():
    db = SessionLocal()
    try:
        stats = backfill_inventory_links(db, changed_by="backfill_inventory_links")
        logger.info(
            f"Scanned {stats['scanned']} expenses, linked {stats['linked']}, "
            f"{stats['missing_item']} referenced items that no longer exist"
        )
        return 0
    except LedgerError as e:
        logger.error(f"Backfill failed: {e.message}", exc_info=True)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(backfill())
