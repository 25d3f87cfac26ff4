import asyncio
from datetime import timedelta

from app.services import scheduler as scheduler_module


async def test_start_scheduler_registers_sync_job(monkeypatch):
    monkeypatch.setattr(scheduler_module.settings, "SYNC_INTERVAL_MINUTES", 15)

    scheduler_module.start_scheduler()
    try:
        job = scheduler_module.scheduler.get_job("full_sync")
        assert job is not None
        assert job.func is scheduler_module.full_sync
        assert job.trigger.interval == timedelta(minutes=15)
        assert job.max_instances == 1
    finally:
        scheduler_module.stop_scheduler()

    # AsyncIOScheduler finishes shutting down on the next loop iteration
    await asyncio.sleep(0)
    assert not scheduler_module.scheduler.running
