"""Equipment failure-risk scoring and maintenance planning.

The risk score is a fixed-weight linear combination of condition features
squashed through a logistic curve, with a small uniform jitter drawn from the
caller's random generator. Everything downstream (tier, time to failure,
priority, cost, downtime) is a table lookup or closed-form formula on top of it.
"""

import logging
import math
from collections import defaultdict
from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone

import numpy as np

from gridpulse.schemas.maintenance import (
    EquipmentSnapshot,
    FailurePatternReport,
    MaintenanceConstraints,
    MaintenancePrediction,
    MaintenanceTask,
    RiskLevel,
    TypeCostReference,
)
from gridpulse.services.rounding import round_half_up

logger = logging.getLogger(__name__)

# age, days since maintenance, operating-hours ratio, load factor,
# temperature, vibration, failure count, is-transformer, is-breaker
_FEATURE_WEIGHTS = np.array([0.15, 0.20, 0.15, 0.20, 0.10, 0.10, 0.10, 0.05, 0.05])
_LOGISTIC_STEEPNESS = 5.0
_LOGISTIC_CENTER = 0.5
_JITTER_HALF_WIDTH = 2.5

_HOURS_PER_YEAR = 8760
_BASE_DAYS_TO_FAILURE = 365
_DECAY_SCALE = 30
_AGE_HORIZON_YEARS = 30
_MIN_AGE_FACTOR = 0.1

_BASE_COST_USD = {
    "transformer": 50_000,
    "breaker": 15_000,
    "capacitor": 8_000,
    "reactor": 12_000,
    "other": 5_000,
}
_COST_MULTIPLIER = {"low": 0.5, "medium": 1.0, "high": 1.5, "critical": 2.5}

_BASE_DOWNTIME_HOURS = {
    "transformer": 48,
    "breaker": 12,
    "capacitor": 8,
    "reactor": 16,
    "other": 6,
}
_DOWNTIME_MULTIPLIER = {"low": 0.5, "medium": 1.0, "high": 1.5, "critical": 2.0}

# Mean time to failure reported when no equipment has ever failed
_NO_FAILURE_MTTF_DAYS = 365 * 10


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _logistic(x: float) -> float:
    """Overflow-safe 1 / (1 + exp(-x))."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


# ── Scoring ───────────────────────────────────────────────────────────────────

def extract_features(equipment: EquipmentSnapshot, as_of: datetime) -> np.ndarray:
    days_since_maintenance = (
        _as_utc(as_of) - _as_utc(equipment.last_maintenance_date)
    ).days
    kind = equipment.type.lower()
    return np.array(
        [
            equipment.age,
            days_since_maintenance,
            equipment.operating_hours / _HOURS_PER_YEAR,
            equipment.average_load / equipment.max_load,
            equipment.temperature / 100,
            equipment.vibration / 10,
            equipment.failure_history,
            1.0 if kind == "transformer" else 0.0,
            1.0 if kind == "breaker" else 0.0,
        ],
        dtype=float,
    )


def failure_probability(features: np.ndarray, rng: np.random.Generator) -> float:
    """Squash the weighted feature score to a 0–100 probability, with jitter."""
    score = float(features @ _FEATURE_WEIGHTS)
    probability = 100.0 * _logistic(_LOGISTIC_STEEPNESS * (score - _LOGISTIC_CENTER))
    probability += rng.uniform(-_JITTER_HALF_WIDTH, _JITTER_HALF_WIDTH)
    return min(100.0, max(0.0, probability))


def classify_risk(probability: float) -> RiskLevel:
    if probability >= 80:
        return "critical"
    if probability >= 60:
        return "high"
    if probability >= 40:
        return "medium"
    return "low"


def estimate_time_to_failure(probability: float, age: float) -> float:
    """Days until expected failure; decays exponentially with probability."""
    days = _BASE_DAYS_TO_FAILURE * math.exp(-probability / _DECAY_SCALE)
    age_factor = max(_MIN_AGE_FACTOR, 1 - age / _AGE_HORIZON_YEARS)
    return max(1.0, days * age_factor)


def maintenance_priority(probability: float, equipment: EquipmentSnapshot) -> int:
    priority = probability / 10
    if equipment.type.lower() == "transformer":
        priority *= 1.5
    priority += equipment.failure_history * 0.5
    return min(10, max(1, round_half_up(priority)))


def estimate_cost(equipment_type: str, risk_level: RiskLevel) -> int:
    base = _BASE_COST_USD.get(equipment_type.lower(), _BASE_COST_USD["other"])
    return round_half_up(base * _COST_MULTIPLIER[risk_level])


def estimate_downtime(equipment_type: str, risk_level: RiskLevel) -> int:
    base = _BASE_DOWNTIME_HOURS.get(equipment_type.lower(), _BASE_DOWNTIME_HOURS["other"])
    return round_half_up(base * _DOWNTIME_MULTIPLIER[risk_level])


def recommended_action(risk_level: RiskLevel, days_to_failure: float) -> str:
    if risk_level == "critical":
        return "Immediate emergency maintenance required"
    if risk_level == "high":
        return f"Schedule maintenance within {round_half_up(days_to_failure)} days"
    if risk_level == "medium":
        return "Include in the next preventive maintenance cycle"
    return "Monitor condition; maintenance not urgent"


def score_equipment(
    equipment: EquipmentSnapshot,
    rng: np.random.Generator | None = None,
    as_of: datetime | None = None,
) -> MaintenancePrediction:
    """Score one equipment snapshot.

    Args:
        equipment: Condition snapshot to score.
        rng:       Source of the score jitter. Pass a seeded generator for
                   reproducible output; a fresh unseeded one is used otherwise.
        as_of:     Reference time for days-since-maintenance (default: now, UTC).
    """
    rng = rng if rng is not None else np.random.default_rng()
    as_of = as_of or datetime.now(timezone.utc)

    features = extract_features(equipment, as_of)
    probability = round(failure_probability(features, rng), 2)
    risk_level = classify_risk(probability)
    time_to_failure = estimate_time_to_failure(probability, equipment.age)

    return MaintenancePrediction(
        equipment_id=equipment.id,
        equipment_name=equipment.name,
        failure_probability=probability,
        risk_level=risk_level,
        recommended_action=recommended_action(risk_level, time_to_failure),
        estimated_time_to_failure=round_half_up(time_to_failure),
        priority=maintenance_priority(probability, equipment),
        estimated_cost=estimate_cost(equipment.type, risk_level),
        estimated_downtime=estimate_downtime(equipment.type, risk_level),
    )


def score_fleet(
    equipment: Sequence[EquipmentSnapshot],
    rng: np.random.Generator | None = None,
    as_of: datetime | None = None,
) -> list[MaintenancePrediction]:
    """Score every snapshot in turn; result is ordered by priority, highest first."""
    if not equipment:
        return []
    rng = rng if rng is not None else np.random.default_rng()
    as_of = as_of or datetime.now(timezone.utc)

    predictions = [score_equipment(eq, rng, as_of) for eq in equipment]
    predictions.sort(key=lambda p: p.priority, reverse=True)

    critical = sum(1 for p in predictions if p.risk_level == "critical")
    logger.info("Scored %d equipment items (%d critical)", len(predictions), critical)
    return predictions


# ── Planning ──────────────────────────────────────────────────────────────────

def plan_maintenance(
    predictions: Sequence[MaintenancePrediction],
    constraints: MaintenanceConstraints,
    start_date: date | None = None,
) -> list[MaintenanceTask]:
    """Greedy maintenance calendar under budget and daily-downtime caps.

    Items are taken by priority. Low-risk items and items that would exceed
    the remaining budget are skipped; when the day's downtime cap would be
    exceeded the calendar rolls over to the next day.
    """
    current = start_date or datetime.now(timezone.utc).date()
    daily_downtime = 0.0
    total_cost = 0.0
    schedule: list[MaintenanceTask] = []

    for prediction in sorted(predictions, key=lambda p: p.priority, reverse=True):
        if prediction.risk_level == "low":
            continue
        if total_cost + prediction.estimated_cost > constraints.available_budget:
            continue

        if daily_downtime + prediction.estimated_downtime > constraints.max_daily_downtime:
            current += timedelta(days=1)
            daily_downtime = 0.0

        if prediction.risk_level == "critical":
            offset = 1
        elif prediction.risk_level == "high":
            offset = int(min(7, prediction.estimated_time_to_failure / 2))
        else:
            offset = int(min(30, prediction.estimated_time_to_failure / 2))

        schedule.append(
            MaintenanceTask(
                equipment_id=prediction.equipment_id,
                scheduled_date=current + timedelta(days=offset),
                maintenance_type=(
                    "predictive"
                    if prediction.risk_level in ("critical", "high")
                    else "preventive"
                ),
                estimated_duration=prediction.estimated_downtime,
                estimated_cost=prediction.estimated_cost,
            )
        )
        daily_downtime += prediction.estimated_downtime
        total_cost += prediction.estimated_cost

    schedule.sort(key=lambda t: t.scheduled_date)
    logger.info(
        "Planned %d of %d maintenance items (cost=%.0f USD)",
        len(schedule),
        len(predictions),
        total_cost,
    )
    return schedule


def analyze_failure_patterns(equipment: Sequence[EquipmentSnapshot]) -> FailurePatternReport:
    """Summarise failure history across a fleet, grouped by equipment type."""
    if not equipment:
        return FailurePatternReport(
            common_failure_types=[], average_time_to_failure=0, cost_trends=[]
        )

    by_type: dict[str, list[EquipmentSnapshot]] = defaultdict(list)
    for eq in equipment:
        by_type[eq.type].append(eq)

    mean_failures_by_type = {
        kind: float(np.mean([eq.failure_history for eq in items]))
        for kind, items in by_type.items()
    }
    common = sorted(mean_failures_by_type, key=mean_failures_by_type.get, reverse=True)[:3]

    mean_age = float(np.mean([eq.age for eq in equipment]))
    mean_failures = float(np.mean([eq.failure_history for eq in equipment]))
    mttf = mean_age * 365 / mean_failures if mean_failures > 0 else _NO_FAILURE_MTTF_DAYS

    cost_trends = [
        TypeCostReference(
            type=kind,
            avg_cost=float(_BASE_COST_USD.get(kind.lower(), _BASE_COST_USD["other"])),
        )
        for kind in by_type
    ]

    return FailurePatternReport(
        common_failure_types=common,
        average_time_to_failure=round_half_up(mttf),
        cost_trends=cost_trends,
    )
