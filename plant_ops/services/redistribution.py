# plant_ops/services/redistribution.py
"""
Load Redistribution Solver - re-routes a serviced machine's throughput
across its operational parallel machines.

Every strategy obeys two invariants: no step adds negative load, and the
steps of one strategy never add up to more than the displaced load.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional

from ..models.machine import (
    MachineState,
    MachineStatus,
    RedistributionStep,
    RedistributionStrategy,
    RiskLevel,
    utilization_pct,
)

# Step risk bands on projected utilization (%)
HIGH_RISK_UTILIZATION = 95.0
MEDIUM_RISK_UTILIZATION = 85.0

# Score penalty per strategy risk level when picking a recommendation
RISK_PENALTY = {RiskLevel.LOW: 0.0, RiskLevel.MEDIUM: 10.0, RiskLevel.HIGH: 30.0}


def _floor2(value: float) -> float:
    """Round down to 0.01 so rounded steps never exceed the displaced load."""
    return math.floor(value * 100) / 100


def step_risk(utilization: float) -> RiskLevel:
    if utilization > HIGH_RISK_UTILIZATION:
        return RiskLevel.HIGH
    if utilization > MEDIUM_RISK_UTILIZATION:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def parallel_candidates(machine: MachineStatus, fleet: List[MachineStatus]) -> List[MachineStatus]:
    """Parallel machines that are operational and have capacity."""
    parallel = set(machine.parallel_machine_ids)
    return [
        m for m in fleet
        if m.id in parallel and m.id != machine.id
        and m.status == MachineState.OPERATIONAL and m.capacity_units_hr > 0
    ]


# ---------- allocation policies ----------

def _greedy(load: float, candidates: List[MachineStatus], ceiling: float) -> List[float]:
    """Fill candidates in the given order up to `ceiling`."""
    remaining = load
    shares = []
    for machine in candidates:
        add = min(remaining, machine.headroom(ceiling))
        shares.append(add)
        remaining -= add
    return shares


def _equal_spread(load: float, candidates: List[MachineStatus], ceiling: float) -> List[float]:
    """Water-fill: equal shares, re-spreading what saturated machines cannot take."""
    shares = [0.0] * len(candidates)
    remaining = load
    open_idx = [i for i, m in enumerate(candidates) if m.headroom(ceiling) > 0]
    while remaining > 1e-9 and open_idx:
        share = remaining / len(open_idx)
        still_open = []
        for i in open_idx:
            room = candidates[i].headroom(ceiling) - shares[i]
            add = min(share, room)
            shares[i] += add
            remaining -= add
            if room - add > 1e-9:
                still_open.append(i)
        open_idx = still_open
    return shares


def _by_headroom(candidates: List[MachineStatus]) -> List[MachineStatus]:
    return sorted(candidates, key=lambda m: (-m.headroom(100.0), m.id))


def _by_utilization(candidates: List[MachineStatus]) -> List[MachineStatus]:
    return sorted(candidates, key=lambda m: (m.utilization, m.id))


def _by_service_window(candidates: List[MachineStatus]) -> List[MachineStatus]:
    far_future = date.max
    return sorted(candidates, key=lambda m: (m.next_service or far_future, m.id), reverse=True)


@dataclass(frozen=True)
class RedistributionPolicy:
    name: str
    description: str
    ceiling_pct: Optional[float]   # None -> use the configured balanced ceiling
    order: Callable[[List[MachineStatus]], List[MachineStatus]]
    spread: bool = False


POLICIES = (
    RedistributionPolicy(
        "Aggressive Recovery",
        "Minimize throughput loss; parallel machines may run up to full capacity.",
        100.0, _by_headroom,
    ),
    RedistributionPolicy(
        "Balanced Health",
        "Cap parallel machines at the utilization ceiling to protect asset life.",
        None, _by_headroom,
    ),
    RedistributionPolicy(
        "Equal Spread",
        "Spread the load evenly across the widest set of parallel machines.",
        100.0, _by_headroom, spread=True,
    ),
    RedistributionPolicy(
        "Quality First",
        "Accept lower throughput; least-stressed machines only, capped at 80%.",
        80.0, _by_utilization,
    ),
    RedistributionPolicy(
        "Service Clustering",
        "Prefer machines with the longest time until their next planned service.",
        90.0, _by_service_window,
    ),
)


def _build_strategy(
    policy: RedistributionPolicy,
    load: float,
    candidates: List[MachineStatus],
    ceiling: float,
    line_base_throughput: float,
) -> RedistributionStrategy:
    ordered = policy.order(candidates)
    shares = (_equal_spread if policy.spread else _greedy)(load, ordered, ceiling)

    steps = []
    for machine, share in zip(ordered, shares):
        add = _floor2(max(0.0, share))
        if add <= 0:
            continue
        new_util = utilization_pct(machine.current_load_units_hr + add, machine.capacity_units_hr)
        steps.append(RedistributionStep(
            target_machine_id=machine.id,
            additional_load_units=add,
            new_utilization=new_util,
            risk_level=step_risk(new_util),
        ))

    recovered = round(sum(s.additional_load_units for s in steps), 2)
    unserved = round(max(0.0, load - recovered), 2)
    risk = max((s.risk_level for s in steps), key=lambda r: r.rank, default=RiskLevel.LOW)

    if steps:
        targets = ", ".join(f"{s.target_machine_id} -> {s.new_utilization}%" for s in steps)
        reasoning = f"Recovers {recovered} of {round(load, 2)} units/hr via {targets}."
    else:
        reasoning = "No parallel headroom under this policy; displaced load stays unserved."
    if unserved > 0:
        reasoning += f" {unserved} units/hr remain unserved."

    return RedistributionStrategy(
        name=policy.name,
        description=policy.description,
        reasoning=reasoning,
        steps=steps,
        recovered_units=recovered,
        unserved_units=unserved,
        projected_throughput=round(line_base_throughput + recovered, 2),
        risk_level=risk,
    )


def redistribute(
    machine: MachineStatus,
    fleet: List[MachineStatus],
    ceiling_pct: float = 85.0,
    policies=POLICIES,
) -> List[RedistributionStrategy]:
    """
    Build one strategy per policy for taking `machine` out of service.

    `projected_throughput` is the machine's line output without it, plus
    whatever the strategy recovers on parallel machines.
    """
    load = max(0.0, machine.current_load_units_hr)
    candidates = parallel_candidates(machine, fleet)
    line_base = sum(
        m.current_load_units_hr for m in fleet
        if m.line_id == machine.line_id and m.id != machine.id and m.status == MachineState.OPERATIONAL
    )

    return [
        _build_strategy(p, load, candidates, p.ceiling_pct or ceiling_pct, line_base)
        for p in policies
    ]


def recommend_strategy(strategies: List[RedistributionStrategy], displaced_load: float) -> int:
    """Index of the best risk/throughput tradeoff (recovered % minus risk penalty)."""
    if not strategies:
        return 0

    def score(item):
        idx, strategy = item
        recovered_pct = strategy.recovered_units / displaced_load * 100 if displaced_load > 0 else 100.0
        return (recovered_pct - RISK_PENALTY[strategy.risk_level], -strategy.risk_level.rank, -idx)

    return max(enumerate(strategies), key=score)[0]
