# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0

from .sim import (
    ConfigurationError,
    Control,
    InvariantError,
    Model,
    ModelBuilder,
    NO_BREAK_THRESHOLD,
    Node,
    SimulationError,
    State,
)
from .solvers import IntegratorMode, RelaxationOrder, SolverBase, SolverRelaxation
from .models import CircleModel, GridModel, RopeModel
from .simulation import Simulation, SimulationConfig, Snapshot

__version__ = "0.1.0"

__all__ = [
    "CircleModel",
    "ConfigurationError",
    "Control",
    "GridModel",
    "IntegratorMode",
    "InvariantError",
    "Model",
    "ModelBuilder",
    "NO_BREAK_THRESHOLD",
    "Node",
    "RelaxationOrder",
    "RopeModel",
    "Simulation",
    "SimulationConfig",
    "SimulationError",
    "Snapshot",
    "SolverBase",
    "SolverRelaxation",
    "State",
]
