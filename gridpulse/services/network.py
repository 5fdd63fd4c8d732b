"""Rule-based power-flow evaluation.

Each rule inspects node / line snapshots against a fixed threshold and, when it
fires, emits a recommendation with a heuristic impact estimate. There is no
solver: the "objective value" and savings are weighted sums over the same
snapshot quantities and impacts.
"""

import logging
import time
from collections.abc import Sequence

import numpy as np

from gridpulse.config import settings
from gridpulse.exceptions import InvalidInputError
from gridpulse.schemas.network import (
    GridNodeSnapshot,
    OptimizationObjectives,
    OptimizationRecommendation,
    OptimizationResult,
    TransmissionLineSnapshot,
)
from gridpulse.services.rounding import round_half_up

logger = logging.getLogger(__name__)

_PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}

_LINE_OVERLOAD_RATIO = 0.9
_LINE_TARGET_RATIO = 0.8
_IMBALANCE_THRESHOLD = 0.2
_NODE_OVERLOADED_RATIO = 0.85
_NODE_UNDERLOADED_RATIO = 0.5
_LINE_LOSS_THRESHOLD = 10.0
_RENEWABLE_UNDERUSE_RATIO = 0.7
_RENEWABLE_MARKERS = ("solar", "wind", "eólic", "eolic")

_SWITCHABLE_LINE_CAPACITY = 100.0
_MAX_SWITCH_CANDIDATES = 3
_TOPOLOGY_SAVINGS_PER_UNIT = 60
_VOLTAGE_SAVINGS_PER_UNIT = 30


def is_renewable_node(node: GridNodeSnapshot) -> bool:
    name = node.name.lower()
    return any(marker in name for marker in _RENEWABLE_MARKERS)


def load_imbalance(nodes: Sequence[GridNodeSnapshot]) -> float:
    """Population standard deviation of node load factors."""
    if not nodes:
        return 0.0
    factors = np.array([n.current_load / n.capacity for n in nodes], dtype=float)
    return float(factors.std())


def transmission_losses(lines: Sequence[TransmissionLineSnapshot]) -> float:
    """Aggregate I²R losses across *lines*, scaled to MW."""
    return sum(line.current_flow**2 * line.resistance / 1000 for line in lines)


def renewable_utilization(nodes: Sequence[GridNodeSnapshot]) -> float:
    renewable = [n for n in nodes if is_renewable_node(n)]
    if not renewable:
        return 0.0
    return sum(n.current_load / n.capacity for n in renewable) / len(renewable)


def _sorted_by_priority(
    recommendations: list[OptimizationRecommendation],
) -> list[OptimizationRecommendation]:
    return sorted(recommendations, key=lambda r: _PRIORITY_RANK[r.priority], reverse=True)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


# ── Rules ─────────────────────────────────────────────────────────────────────

def check_line_overloads(
    lines: Sequence[TransmissionLineSnapshot],
) -> list[OptimizationRecommendation]:
    recommendations = []
    for line in lines:
        utilization = line.current_flow / line.capacity
        if utilization <= _LINE_OVERLOAD_RATIO:
            continue
        recommendations.append(
            OptimizationRecommendation(
                type="redistribute_load",
                description=(
                    f"Line {line.id} loaded at {round_half_up(utilization * 100)}% of capacity. "
                    "Redistribute load."
                ),
                affected_entities=[line.id],
                priority="high",
                estimated_impact=(line.current_flow - line.capacity * _LINE_TARGET_RATIO) * 0.05,
            )
        )
    return recommendations


def check_load_balance(nodes: Sequence[GridNodeSnapshot]) -> list[OptimizationRecommendation]:
    imbalance = load_imbalance(nodes)
    if imbalance <= _IMBALANCE_THRESHOLD:
        return []

    overloaded = [n for n in nodes if n.current_load / n.capacity > _NODE_OVERLOADED_RATIO]
    underloaded = [n for n in nodes if n.current_load / n.capacity < _NODE_UNDERLOADED_RATIO]
    if not overloaded or not underloaded:
        return []

    return [
        OptimizationRecommendation(
            type="redistribute_load",
            description=(
                f"Load imbalance of {round_half_up(imbalance * 100)}% detected. "
                "Redistribute load between nodes."
            ),
            affected_entities=[n.id for n in overloaded] + [n.id for n in underloaded],
            priority="medium",
            estimated_impact=imbalance * 100,
        )
    ]


def check_line_losses(
    lines: Sequence[TransmissionLineSnapshot],
) -> list[OptimizationRecommendation]:
    recommendations = []
    for line in lines:
        loss = line.current_flow**2 * line.resistance
        if loss <= _LINE_LOSS_THRESHOLD:
            continue
        recommendations.append(
            OptimizationRecommendation(
                type="adjust_voltage",
                description=(
                    f"Line {line.id} has high losses. Adjust voltage to reduce current."
                ),
                affected_entities=[line.from_node_id, line.to_node_id],
                priority="medium",
                estimated_impact=loss * 0.3,
            )
        )
    return recommendations


def check_renewable_dispatch(
    nodes: Sequence[GridNodeSnapshot],
) -> list[OptimizationRecommendation]:
    recommendations = []
    for node in nodes:
        if not is_renewable_node(node):
            continue
        utilization = node.current_load / node.capacity
        if utilization >= _RENEWABLE_UNDERUSE_RATIO:
            continue
        recommendations.append(
            OptimizationRecommendation(
                type="increase_renewable",
                description=(
                    f"Renewable node {node.name} running at {round_half_up(utilization * 100)}%. "
                    "Increase dispatch."
                ),
                affected_entities=[node.id],
                priority="high",
                estimated_impact=(node.capacity - node.current_load) * 0.8,
            )
        )
    return recommendations


def objective_value(
    nodes: Sequence[GridNodeSnapshot],
    lines: Sequence[TransmissionLineSnapshot],
    objectives: OptimizationObjectives,
) -> float:
    value = 0.0
    if objectives.minimize_losses:
        value += transmission_losses(lines) * 100
    if objectives.balance_load:
        value += load_imbalance(nodes) * 1000
    if objectives.maximize_renewables:
        # Subtracted: higher renewable utilization is better
        value -= renewable_utilization(nodes) * 500
    return value


# ── Evaluations ───────────────────────────────────────────────────────────────

def evaluate_power_flow(
    nodes: Sequence[GridNodeSnapshot],
    lines: Sequence[TransmissionLineSnapshot],
    objectives: OptimizationObjectives,
) -> OptimizationResult:
    """Run the power-flow rule set and rank the resulting recommendations.

    The line-overload rule always runs; the remaining rules are gated by the
    matching objective flag. ``minimize_costs`` currently gates no rule.
    """
    started = time.perf_counter()

    recommendations = check_line_overloads(lines)
    if objectives.balance_load:
        recommendations += check_load_balance(nodes)
    if objectives.minimize_losses:
        recommendations += check_line_losses(lines)
    if objectives.maximize_renewables:
        recommendations += check_renewable_dispatch(nodes)

    savings = sum(r.estimated_impact for r in recommendations) * settings.savings_per_mw_usd

    logger.info(
        "Power-flow evaluation: %d nodes, %d lines → %d recommendations",
        len(nodes),
        len(lines),
        len(recommendations),
    )
    return OptimizationResult(
        success=True,
        objective_value=objective_value(nodes, lines, objectives),
        recommendations=_sorted_by_priority(recommendations),
        estimated_savings=round_half_up(savings),
        execution_time_ms=_elapsed_ms(started),
    )


def evaluate_topology(
    nodes: Sequence[GridNodeSnapshot],
    lines: Sequence[TransmissionLineSnapshot],
    rng: np.random.Generator | None = None,
) -> OptimizationResult:
    """Propose line switching among the first few high-capacity lines.

    Each candidate is switched on a coin flip from *rng*; there is no search.
    """
    started = time.perf_counter()
    rng = rng if rng is not None else np.random.default_rng()

    candidates = [line for line in lines if line.capacity > _SWITCHABLE_LINE_CAPACITY]
    recommendations = []
    for line in candidates[:_MAX_SWITCH_CANDIDATES]:
        if rng.random() <= 0.5:
            continue
        recommendations.append(
            OptimizationRecommendation(
                type="switch_line",
                description=f"Reconfigure line {line.id} to improve network topology.",
                affected_entities=[line.id, line.from_node_id, line.to_node_id],
                priority="medium",
                estimated_impact=15 + rng.random() * 10,
            )
        )

    savings = sum(r.estimated_impact for r in recommendations) * _TOPOLOGY_SAVINGS_PER_UNIT
    return OptimizationResult(
        success=True,
        objective_value=1000 - len(recommendations) * 50,
        recommendations=recommendations,
        estimated_savings=round_half_up(savings),
        execution_time_ms=_elapsed_ms(started),
    )


def evaluate_voltage(
    nodes: Sequence[GridNodeSnapshot],
    nominal_kv: float | None = None,
    tolerance: float | None = None,
) -> OptimizationResult:
    """Flag nodes whose voltage deviates from nominal by more than *tolerance*."""
    started = time.perf_counter()
    nominal_kv = settings.nominal_voltage_kv if nominal_kv is None else nominal_kv
    tolerance = settings.voltage_tolerance if tolerance is None else tolerance
    if nominal_kv <= 0:
        raise InvalidInputError(f"nominal_kv must be positive (got {nominal_kv})")
    if tolerance < 0:
        raise InvalidInputError(f"tolerance must not be negative (got {tolerance})")

    recommendations = []
    for node in nodes:
        deviation = abs(node.voltage - nominal_kv) / nominal_kv
        if deviation <= tolerance:
            continue
        direction = "Lower" if node.voltage > nominal_kv else "Raise"
        recommendations.append(
            OptimizationRecommendation(
                type="adjust_voltage",
                description=(
                    f"Node {node.name}: {node.voltage:g} kV is out of range. "
                    f"{direction} voltage."
                ),
                affected_entities=[node.id],
                priority="high" if deviation > 2 * tolerance else "medium",
                estimated_impact=deviation * 100,
            )
        )

    savings = sum(r.estimated_impact for r in recommendations) * _VOLTAGE_SAVINGS_PER_UNIT
    return OptimizationResult(
        success=True,
        objective_value=len(recommendations) * 10,
        recommendations=_sorted_by_priority(recommendations),
        estimated_savings=round_half_up(savings),
        execution_time_ms=_elapsed_ms(started),
    )
