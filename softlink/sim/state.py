# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# State class for 2D node-link simulations

from dataclasses import dataclass
from typing import Tuple


class State:
    """
    Represents the time-varying state of a 2D simulation.
    
    Contains node positions, previous positions, velocities, and forces.
    
    Attributes:
        particle_q: Positions (vec2), shape [particle_count]
        particle_q_prev: Positions at the start of the last integration (vec2), shape [particle_count]
        particle_qd: Velocities (vec2), shape [particle_count]
        particle_f: Accumulated forces (vec2), shape [particle_count]
    """
    
    def __init__(self):
        self.particle_q = None       # Positions (vec2)
        self.particle_q_prev = None  # Previous positions (vec2)
        self.particle_qd = None      # Velocities (vec2)
        self.particle_f = None       # Forces (vec2)


@dataclass(frozen=True)
class Node:
    """Read-only view of a single node, assembled from model and state arrays."""
    index: int
    position: Tuple[float, float]
    previous_position: Tuple[float, float]
    velocity: Tuple[float, float]
    force: Tuple[float, float]
    mass: float
    fixed: bool
