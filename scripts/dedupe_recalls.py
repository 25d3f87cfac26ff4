import argparse, asyncio, logging, sys, os

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(ROOT)

from app.services.dedupe_service import dedupe_recalls

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

async def main(apply: bool):
    result = await dedupe_recalls(apply=apply)
    for i, group in enumerate(result["groups"][:20], start=1):
        print(f"{i}. key={group['key']}  keeper={group['keeperId']}  count={group['count']}  delete={', '.join(group['delete'])}")

    if not apply:
        print("\nDry-run mode: no changes applied. Use --apply to execute deletions/merges.")
    else:
        print(f"\nDone. Updated {result['updated']} keepers. Deleted {result['deleted']} documents.")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Find and merge duplicate recalls")
    parser.add_argument("--apply", action="store_true", help="apply merges and deletions (default is a dry run)")
    args = parser.parse_args()
    asyncio.run(main(args.apply))
