from fastapi import APIRouter

from app.services.active_status_service import refresh_active_from_fsis
from app.services.dedupe_service import dedupe_recalls
from app.services.normalizer_service import renormalize_all
from app.services.sync_manager import full_sync

router = APIRouter()


@router.post("/run")
async def run_sync():
    result = await full_sync()
    return {"message": "Sync completed", "result": result}


@router.post("/renormalize")
async def renormalize():
    result = await renormalize_all()
    return {"message": "Re-normalization completed", "result": result}


@router.post("/dedupe")
async def dedupe(apply: bool = False):
    result = await dedupe_recalls(apply=apply)
    message = "Dedupe applied" if apply else "Dedupe dry run, nothing changed"
    return {"message": message, "result": result}


@router.post("/active")
async def refresh_active(dry_run: bool = False, mark_missing: bool = False):
    result = await refresh_active_from_fsis(dry_run=dry_run, mark_missing=mark_missing)
    message = "Active flags dry run, nothing changed" if dry_run else "Active flags refreshed"
    return {"message": message, "result": result}
