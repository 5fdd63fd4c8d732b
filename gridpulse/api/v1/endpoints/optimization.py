"""Network rule-evaluation endpoints.

POST /optimization/power-flow  — objective-gated threshold rules
POST /optimization/topology    — line-switching proposals
POST /optimization/voltage     — voltage deviation checks
GET  /optimization/history     — stored runs, newest first

Every POST accepts ``persist=true`` to store the run with its inputs.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gridpulse.db.session import get_db
from gridpulse.dependencies import make_rng, require_api_key
from gridpulse.models.network_optimization import OptimizationType
from gridpulse.schemas.network import (
    OptimizationResult,
    PowerFlowRequest,
    TopologyRequest,
    VoltageRequest,
)
from gridpulse.services.history import load_optimization_runs, save_optimization_run
from gridpulse.services.network import evaluate_power_flow, evaluate_topology, evaluate_voltage

logger = logging.getLogger(__name__)

router = APIRouter()


async def _respond(
    db: AsyncSession,
    persist: bool,
    optimization_type: OptimizationType,
    inputs: dict,
    result: OptimizationResult,
) -> dict:
    run_id = None
    if persist:
        run_id = await save_optimization_run(db, optimization_type, inputs, result)
    return {**result.model_dump(), "run_id": str(run_id) if run_id else None}


@router.post(
    "/power-flow",
    summary="Power-flow recommendations",
    description=(
        "Flags overloaded lines unconditionally, and load imbalance, line losses and "
        "under-used renewable nodes when the matching objective is enabled."
    ),
)
async def optimize_power_flow(
    body: PowerFlowRequest,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(require_api_key),
):
    result = evaluate_power_flow(body.nodes, body.lines, body.objectives)
    inputs = {
        "objectives": body.objectives.model_dump(),
        "nodes": len(body.nodes),
        "lines": len(body.lines),
    }
    return await _respond(db, body.persist, OptimizationType.power_flow, inputs, result)


@router.post("/topology", summary="Line switching proposals")
async def optimize_topology(
    body: TopologyRequest,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(require_api_key),
):
    result = evaluate_topology(body.nodes, body.lines, rng=make_rng(body.seed))
    inputs = {"seed": body.seed, "nodes": len(body.nodes), "lines": len(body.lines)}
    return await _respond(db, body.persist, OptimizationType.topology, inputs, result)


@router.post("/voltage", summary="Voltage control recommendations")
async def optimize_voltage(
    body: VoltageRequest,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(require_api_key),
):
    result = evaluate_voltage(body.nodes)
    inputs = {"nodes": len(body.nodes)}
    return await _respond(db, body.persist, OptimizationType.voltage, inputs, result)


@router.get("/history", summary="Stored optimization runs")
async def get_optimization_history(
    limit: int = 10,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(require_api_key),
):
    runs = await load_optimization_runs(db, limit)
    return [
        {
            "id": str(run.id),
            "optimization_type": run.optimization_type,
            "recommendation_count": run.recommendation_count,
            "savings_estimated": run.savings_estimated,
            "execution_time_ms": run.execution_time_ms,
            "created_at": run.created_at.isoformat() if run.created_at else None,
            "output_results": run.output_results,
        }
        for run in runs
    ]
