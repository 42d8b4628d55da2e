# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Solvers module for 2D node-link simulations

from .solver import SolverBase
from .relaxation.solver_relaxation import IntegratorMode, RelaxationOrder, SolverRelaxation

__all__ = [
    "IntegratorMode",
    "RelaxationOrder",
    "SolverBase",
    "SolverRelaxation",
]
