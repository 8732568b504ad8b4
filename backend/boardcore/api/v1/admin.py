"""Admin endpoints: counter reconciliation."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.dependencies import Caller, get_admin_caller, get_db
from boardcore.schemas import ApiResponse, CounterDriftResponse
from boardcore.services.reconcile_service import ReconcileService
from boardcore.services.targets import TargetKind

router = APIRouter()


@router.post("/reconcile/{kind}/{target_id}", response_model=ApiResponse)
async def reconcile_counters(
    kind: TargetKind,
    target_id: int,
    dry_run: bool = Query(False, description="Report drift without repairing it"),
    caller: Caller = Depends(get_admin_caller),
    db: AsyncSession = Depends(get_db),
):
    """Recompute a target's counters from the ledger and repair any drift."""
    service = ReconcileService(db)
    drift = await service.check(kind, target_id) if dry_run else await service.repair(kind, target_id)

    return ApiResponse(
        status="success",
        data={
            "kind": kind.value,
            "target_id": target_id,
            "repaired": not dry_run and bool(drift),
            "drift": {
                name: CounterDriftResponse.model_validate(counter).model_dump(mode="json")
                for name, counter in drift.items()
            },
        },
    )
