import sys, os, asyncio, logging
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(ROOT)

from app.services.normalizer_service import renormalize_all

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

async def main():
    result = await renormalize_all()
    print(result)

if __name__ == "__main__":
    asyncio.run(main())
