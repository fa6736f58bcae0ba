from dataclasses import dataclass, field

@dataclass
class SolverParams:
    """User-adjustable parameters for the smoke solver."""

    # --- [NORMAL] Inflow ---
    inflow_velocity: float = field(default=400.0, metadata={"help": "Speed forced onto the inflow faces every tick.", "category": "Normal", "min": 0.0, "max": 1000.0})
    source_density: float = field(default=1.0, metadata={"help": "Smoke density written into the source band every tick.", "category": "Normal", "min": 0.0, "max": 2.0})

    # --- [ADVANCED] Pressure Projection ---
    overrelaxation: float = field(default=1.9, metadata={"help": "Over-relaxation factor of the Gauss-Seidel projection.", "category": "Advanced", "min": 1.0, "max": 1.99})
    projection_iterations: int = field(default=100, metadata={"help": "Projection sweeps per tick (fixed, no tolerance test).", "category": "Advanced", "min": 1, "max": 400})
