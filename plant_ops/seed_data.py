from datetime import date
from typing import List

from .models.labor import ProductionLine, ShiftCode, Worker, WorkerType
from .models.machine import MachineState, MachineStatus

LINE_NAMES = ["Trim Line", "Chassis Line", "Door Assembly", "Seat Fitment", "Marriage Line", "Final Assembly"]
WORKERS_PER_LINE = 6
MAIN_PER_LINE = 4
REQUIRED_MANPOWER = 4
TAKT_TIME_SECONDS = 90

_NAMES = [
    "Rajesh Kumar", "Amit Sharma", "Suresh Patel", "Vijay Singh", "Rahul Gupta", "Manoj Tiwari",
    "Sanjay Yadav", "Anil Mehta", "Sunil Deshmukh", "Deepak Kulkarni", "Rakesh Verma", "Mahesh Joshi",
    "Vinod Reddy", "Santosh Nair", "Arvind Chauhan", "Dinesh Mishra", "Pankaj Rawat", "Ajay Thapar",
    "Vikram Malhotra", "Jitendra Saxena", "Prashant Rao", "Sandeep Pathak", "Nitin Ghadge", "Ashish Ranade",
    "Abhijit Bhave", "Yogesh Shinde", "Swapnil Pawar", "Sagar More", "Amol Gaikwad", "Kiran Thorat",
    "Sameer Salunkhe", "Rahul Waghmare", "Vishal Sawant", "Rohan Parab", "Akshay Kamble", "Sumit Jadhav",
]


def build_master_pool() -> List[Worker]:
    """
    Six workers per line per shift: four main crew, two buffers.
    Names carry the shift suffix so they stay unique across the pool.
    """
    pool = []
    for shift in ShiftCode:
        name_index = 0
        for line_idx in range(len(LINE_NAMES)):
            line_id = f"L{line_idx + 1}"
            for i in range(1, WORKERS_PER_LINE + 1):
                is_buffer = i > MAIN_PER_LINE
                pool.append(Worker(
                    id=f"TM-{shift.value}-{line_id}-{'BUF' if is_buffer else 'MN'}-{i}",
                    name=f"{_NAMES[name_index % len(_NAMES)]} ({shift.value})",
                    skills=["Assembly"],
                    worker_type=WorkerType.BUFFER if is_buffer else WorkerType.MAIN,
                    assigned_line=line_id,
                    shift=shift,
                ))
                name_index += 1
    return pool


def build_lines(shift: str = "A") -> List[ProductionLine]:
    shift_workers = [w for w in build_master_pool() if w.shift.value == shift]
    lines = []
    for idx, name in enumerate(LINE_NAMES):
        line_id = f"L{idx + 1}"
        on_line = [w for w in shift_workers if w.assigned_line == line_id]
        lines.append(ProductionLine(
            id=line_id,
            name=name,
            takt_time_seconds=TAKT_TIME_SECONDS,
            required_manpower=REQUIRED_MANPOWER,
            current_workers=[w for w in on_line if w.worker_type == WorkerType.MAIN],
            buffers=[w for w in on_line if w.worker_type == WorkerType.BUFFER],
        ))
    return lines


def _machine(mid, name, line_id, cap, load, warranty, parallel, status=MachineState.OPERATIONAL,
             oee=85.0, next_service=date(2026, 6, 15)) -> MachineStatus:
    machine = MachineStatus(
        id=mid, name=name, line_id=line_id, status=status, capacity_units_hr=cap,
        oee=oee, is_under_warranty=warranty, parallel_machine_ids=parallel, next_service=next_service,
    )
    machine.set_load(load)
    return machine


def build_fleet() -> List[MachineStatus]:
    return [
        # Body shop: press & laser (L1)
        _machine("P01", "Press 2000T-01", "L1", 40, 36, True, ["P02"], oee=88, next_service=date(2026, 6, 10)),
        _machine("P02", "Press 2000T-02", "L1", 40, 34, True, ["P01"], oee=82, next_service=date(2026, 6, 12)),
        _machine("LC1", "Laser Cutter X1", "L1", 50, 48, True, ["LC2"], oee=94),
        _machine("LC2", "Laser Cutter X2", "L1", 50, 0, True, ["LC1"], status=MachineState.MAINTENANCE, oee=45),
        # Body shop: welding (L2)
        _machine("R01", "Weld Robot A1", "L2", 60, 56, False, ["R03"], oee=91, next_service=date(2026, 6, 18)),
        _machine("R02", "Weld Robot A2", "L2", 60, 0, True, ["R04"], status=MachineState.DOWN, oee=0),
        _machine("R03", "Weld Robot B1", "L2", 60, 52, False, ["R01"], oee=84, next_service=date(2026, 6, 20)),
        _machine("R04", "Weld Robot B2", "L2", 60, 54, True, ["R02"], oee=87, next_service=date(2026, 6, 20)),
        # Paint shop (L3)
        _machine("PB1", "Paint Booth A", "L3", 20, 19, False, ["PB2"], oee=92, next_service=date(2026, 6, 10)),
        _machine("PB2", "Paint Booth B", "L3", 20, 18, False, ["PB1"], oee=89, next_service=date(2026, 6, 15)),
        # Quality (L5)
        _machine("QC1", "Vision Camera 01", "L5", 200, 195, True, ["QC2"], oee=97, next_service=date(2026, 6, 1)),
        _machine("QC2", "Leak Tester", "L5", 40, 34, True, ["QC1"], oee=82, next_service=date(2026, 6, 10)),
        # Logistics
        _machine("AGV1", "Tugger Bot 01", "LOG", 100, 88, False, ["AGV2"], oee=85, next_service=date(2026, 6, 10)),
        _machine("AGV2", "Tugger Bot 02", "LOG", 100, 90, False, ["AGV1"], oee=87, next_service=date(2026, 6, 12)),
        _machine("AGV3", "Lifter Bot 01", "LOG", 50, 41, False, ["AGV4"], oee=80, next_service=date(2026, 6, 15)),
        _machine("AGV4", "Lifter Bot 02", "LOG", 50, 42, False, ["AGV3"], oee=81, next_service=date(2026, 6, 15)),
    ]
