import asyncio, logging, sys, os

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(ROOT)

from app.services.normalizer_service import renormalize_all
from app.services.sync_manager import full_sync

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

async def main():
    print("=== STEP 1: FETCH + PERSIST ===")
    result = await full_sync()
    print(result.model_dump())

    print("\n=== STEP 2: RE-NORMALIZE ===")
    print(await renormalize_all())

if __name__ == "__main__":
    asyncio.run(main())
