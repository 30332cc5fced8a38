# machine_data/catalog.py

import os
from typing import List, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
CSV_PATH = os.path.join(CURRENT_DIR, "traction_machines.csv")

MM_TO_M = 0.001


class MachineSpec(BaseModel):
    """
    Traction machine identity. Diameters are stored in metres; the bounds
    reject millimetre values that slipped through unconverted.
    """

    model_config = ConfigDict(frozen=True)

    machine_type: str
    model: str
    roping: int = Field(..., ge=1, description="Roping ratio (X:1)")
    sheave_diameter_m: float = Field(..., gt=0, lt=3.0)
    rope_diameter_m: float = Field(..., gt=0, lt=0.1)
    slots: int = Field(..., gt=0)
    poles: int = Field(..., gt=0, description="Magnet count (P)")
    pole_pairs: Optional[int] = None
    drawing_no: str = ""


def load_machines(path: str = CSV_PATH) -> Tuple[MachineSpec, ...]:
    df = pd.read_csv(path, dtype={"drawing_no": str})
    machines: List[MachineSpec] = []
    for row in df.itertuples(index=False):
        machines.append(
            MachineSpec(
                machine_type=row.machine_type,
                model=row.model,
                roping=int(row.roping),
                sheave_diameter_m=float(row.sheave_diameter_mm) * MM_TO_M,
                rope_diameter_m=float(row.rope_diameter_mm) * MM_TO_M,
                slots=int(row.slots),
                poles=int(row.poles),
                pole_pairs=int(row.pole_pairs),
                drawing_no=str(row.drawing_no),
            )
        )
    return tuple(machines)


MACHINES = load_machines()


def machine_models() -> List[str]:
    """Distinct machine models in table order."""
    return list(dict.fromkeys(m.model for m in MACHINES))


def find_machine(model: str, machine_type: Optional[str] = None) -> MachineSpec:
    """
    Lookup by traction machine model (case-insensitive). The same model can be
    listed under several machine types; pass `machine_type` to pick one.
    """
    key = model.strip().upper()
    for spec in MACHINES:
        if spec.model.upper() != key:
            continue
        if machine_type is None or spec.machine_type.upper() == machine_type.strip().upper():
            return spec
    raise KeyError(f"Machine model '{model}' not found in traction machine table")
