import argparse, asyncio, logging, sys, os

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(ROOT)

from app.services.active_status_service import refresh_active_from_fsis

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

async def main(dry_run: bool, mark_missing: bool):
    result = await refresh_active_from_fsis(dry_run=dry_run, mark_missing=mark_missing)
    print(f"Checked {result['checked']} FSIS recalls, {result['updated']} flag change(s), {result['missing']} missing from feed.")
    if dry_run:
        print("Dry-run mode: no changes applied.")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Refresh isActive on stored FSIS recalls from the FSIS feed")
    parser.add_argument("--dry-run", action="store_true", help="only report what would change")
    parser.add_argument("--mark-missing", action="store_true", help="mark recalls no longer in the feed inactive")
    args = parser.parse_args()
    asyncio.run(main(args.dry_run, args.mark_missing))
