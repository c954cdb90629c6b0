# plant_ops/services/fleet.py
"""
FleetService - owns the machine fleet, service bookings and stage progression.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models.machine import (
    SERVICE_STAGES,
    MachineState,
    MachineStatus,
    RedistributionStrategy,
    ServiceStage,
    ServiceType,
)
from .event_logger import log_event

logger = logging.getLogger(__name__)


class UnknownMachineError(KeyError):
    pass


class MachineNotServiceableError(RuntimeError):
    pass


@dataclass
class ServiceBooking:
    machine_id: str
    service_type: ServiceType
    prior_load_units: float
    prior_status: MachineState
    strategy_name: str
    vendor_name: Optional[str] = None
    # target machine id -> load added for this booking
    transfers: Dict[str, float] = field(default_factory=dict)
    # displaced load no target could absorb at booking time
    unserved_units: float = 0.0

    def to_dict(self) -> Dict:
        return {
            "machine_id": self.machine_id,
            "service_type": self.service_type.value,
            "prior_load_units": self.prior_load_units,
            "strategy_name": self.strategy_name,
            "vendor_name": self.vendor_name,
            "transfers": self.transfers,
            "unserved_units": self.unserved_units,
        }


class FleetService:

    def __init__(self, machines: List[MachineStatus]):
        self._lock = threading.RLock()
        self._machines: Dict[str, MachineStatus] = {}
        for machine in machines:
            copy = machine.model_copy(deep=True)
            copy.set_load(copy.current_load_units_hr)
            self._machines[copy.id] = copy
        self._bookings: Dict[str, ServiceBooking] = {}

    def machines(self) -> List[MachineStatus]:
        with self._lock:
            return [m.model_copy(deep=True) for m in self._machines.values()]

    def get(self, machine_id: str) -> MachineStatus:
        with self._lock:
            machine = self._machines.get(machine_id)
            if machine is None:
                raise UnknownMachineError(machine_id)
            return machine.model_copy(deep=True)

    def bookings(self) -> List[ServiceBooking]:
        with self._lock:
            return list(self._bookings.values())

    def book_service(
        self,
        machine_id: str,
        service_type: ServiceType,
        strategy: RedistributionStrategy,
        vendor_name: Optional[str] = None,
    ) -> ServiceBooking:
        """
        Take `machine_id` out of service and apply `strategy`'s load steps.

        Steps aimed at machines that are no longer operational are skipped,
        and each step is capped at its target's current spare capacity: the
        analysis may predate other bookings that loaded the same target.
        Whatever cannot be placed is recorded as unserved.
        """
        with self._lock:
            machine = self._machines.get(machine_id)
            if machine is None:
                raise UnknownMachineError(machine_id)
            if machine.service_stage is not None:
                raise MachineNotServiceableError(f"{machine_id} is already under service ({machine.service_stage.value})")

            booking = ServiceBooking(
                machine_id=machine_id,
                service_type=service_type,
                prior_load_units=machine.current_load_units_hr,
                prior_status=machine.status,
                strategy_name=strategy.name,
                vendor_name=vendor_name,
            )

            budget = machine.current_load_units_hr
            for step in strategy.steps:
                target = self._machines.get(step.target_machine_id)
                if target is None or target.status != MachineState.OPERATIONAL:
                    logger.warning("Skipping step for unavailable machine %s", step.target_machine_id)
                    continue
                spare = target.headroom(100.0)
                if step.additional_load_units > spare:
                    logger.warning(
                        "Step for %s capped at %.2f of %.2f units/hr (no spare capacity)",
                        target.id, spare, step.additional_load_units,
                    )
                add = min(max(0.0, step.additional_load_units), budget, spare)
                if add <= 0:
                    continue
                target.set_load(target.current_load_units_hr + add)
                booking.transfers[target.id] = booking.transfers.get(target.id, 0.0) + add
                budget -= add
            booking.unserved_units = round(budget, 2)

            machine.status = MachineState.MAINTENANCE if service_type == ServiceType.REGULAR else MachineState.DOWN
            machine.set_load(0.0)
            machine.service_stage = ServiceStage.DISPATCHED
            self._bookings[machine_id] = booking

        log_event(
            "SERVICE_BOOKED",
            f"{service_type.value} service for {machine_id} using '{strategy.name}'"
            + (f" with {vendor_name}" if vendor_name else ""),
            transfers=booking.transfers,
        )
        return booking

    def advance_service_stages(self) -> List[Dict]:
        """
        Move every machine under service one stage forward.

        A machine already at Restored returns to operational and takes its
        redistributed load back from the parallel machines.
        """
        changes = []
        with self._lock:
            for machine in self._machines.values():
                if machine.service_stage is None:
                    continue
                if machine.service_stage == ServiceStage.RESTORED:
                    self._restore(machine)
                    changes.append({"machine_id": machine.id, "stage": None, "status": machine.status.value})
                    continue
                next_stage = SERVICE_STAGES[SERVICE_STAGES.index(machine.service_stage) + 1]
                machine.service_stage = next_stage
                changes.append({"machine_id": machine.id, "stage": next_stage.value, "status": machine.status.value})

        for change in changes:
            log_event("SERVICE_STAGE", f"{change['machine_id']} -> {change['stage'] or 'operational'}")
        return changes

    def _restore(self, machine: MachineStatus) -> None:
        booking = self._bookings.pop(machine.id, None)
        returned = 0.0
        if booking:
            added_total = sum(booking.transfers.values())
            for target_id, added in booking.transfers.items():
                target = self._machines.get(target_id)
                if target is None:
                    continue
                taken = min(added, target.current_load_units_hr)
                target.set_load(target.current_load_units_hr - taken)
                returned += taken
            # Load a target could not give back (it went into service itself)
            # stays with that target's own booking and is not duplicated here
            unreturned = max(0.0, added_total - returned)
            restored_load = max(0.0, round(booking.prior_load_units - unreturned, 2))
        else:
            restored_load = 0.0

        machine.status = MachineState.OPERATIONAL
        machine.service_stage = None
        machine.set_load(min(restored_load, machine.capacity_units_hr))
        logger.info("%s restored; %.2f units/hr returned from parallel machines", machine.id, returned)
