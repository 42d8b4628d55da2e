# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Simulation facade: one model, one state, one relaxation solver

import math
from dataclasses import dataclass, asdict

import numpy as np

from .sim.control import Control
from .sim.errors import ConfigurationError
from .sim.state import Node
from .solvers import IntegratorMode, RelaxationOrder, SolverRelaxation


@dataclass(frozen=True)
class SimulationConfig:
    """
    Construction-time settings for a Simulation.

    Defaults follow the rope demo: screen-space coordinates (y down),
    ``dt = 0.05``, gravity 18 and a single relaxation pass.
    """
    # Time stepping
    dt: float = 0.05
    substeps: int = 2                       # Steps per rendered frame (host loop)

    # Forcing
    gravity: float = 18.0
    drag: float = 0.0
    capture_radius: float = 20.0
    pointer_strength: float = 1.0

    # Constraint relaxation
    rigidity: float = 1.0
    relaxation_passes: int = 1
    compression_factor: float = 1.0
    order: str = "sequential"               # 'sequential' or 'colored'

    # Integration
    integrator: str = "euler"               # 'euler' or 'verlet'

    device: str = "cpu"                     # Where generators built from this config allocate

    def __post_init__(self):
        for name in ("dt", "gravity", "drag", "capture_radius", "pointer_strength",
                     "rigidity", "compression_factor"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ConfigurationError(f"{name} must be finite, got {value!r}")

        if self.dt <= 0.0:
            raise ConfigurationError(f"dt must be > 0, got {self.dt!r}")
        if self.substeps < 1:
            raise ConfigurationError(f"substeps must be >= 1, got {self.substeps!r}")
        if self.relaxation_passes < 0:
            raise ConfigurationError(f"relaxation_passes must be >= 0, got {self.relaxation_passes!r}")
        if self.drag < 0.0:
            raise ConfigurationError(f"drag must be >= 0, got {self.drag!r}")
        if self.capture_radius < 0.0:
            raise ConfigurationError(f"capture_radius must be >= 0, got {self.capture_radius!r}")
        if self.compression_factor < 0.0:
            raise ConfigurationError(f"compression_factor must be >= 0, got {self.compression_factor!r}")

        try:
            IntegratorMode(self.integrator)
        except ValueError:
            valid = [m.value for m in IntegratorMode]
            raise ConfigurationError(f"integrator must be one of {valid}, got {self.integrator!r}") from None

        try:
            RelaxationOrder(self.order)
        except ValueError:
            valid = [o.value for o in RelaxationOrder]
            raise ConfigurationError(f"order must be one of {valid}, got {self.order!r}") from None


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of everything a renderer needs after a step."""
    positions: np.ndarray       # [particle_count, 2]
    fixed: np.ndarray           # [particle_count], bool
    links: np.ndarray           # [link_count, 2], int
    strains: np.ndarray         # [link_count]

    @property
    def node_count(self) -> int:
        return len(self.positions)

    @property
    def link_count(self) -> int:
        return len(self.links)


def _read_only(a):
    a = np.array(a, copy=True)
    a.setflags(write=False)
    return a


class Simulation:
    """
    Owns the model, its state and the relaxation solver for one run.

    Example:
        >>> sim = Simulation(RopeModel(num_nodes=20, rest_length=12.5))
        >>> for _ in range(100):
        >>>     sim.step()
        >>> snap = sim.snapshot()
    """

    def __init__(self, model, config: SimulationConfig = None):
        if config is None:
            config = SimulationConfig()
        if model.particle_count == 0:
            raise ConfigurationError("Topology is empty: at least one node is required")

        self.model = model
        self.config = config
        self.state = model.state()

        self.solver = SolverRelaxation(
            model,
            integrator=config.integrator,
            dt=config.dt,
            gravity=config.gravity,
            drag=config.drag,
            rigidity=config.rigidity,
            relaxation_passes=config.relaxation_passes,
            compression_factor=config.compression_factor,
            order=config.order,
            capture_radius=config.capture_radius,
            pointer_strength=config.pointer_strength,
        )

        self.step_count = 0
        self.total_broken = 0
        self.total_cut = 0

    @property
    def last_broken(self) -> int:
        """Links removed by breakage during the last step."""
        return self.solver.last_broken

    @property
    def last_cut(self) -> int:
        """Links removed by the cut gesture during the last step."""
        return self.solver.last_cut

    @property
    def node_count(self) -> int:
        return self.model.particle_count

    @property
    def link_count(self) -> int:
        return self.model.link_count

    def step(self, control: Control = None):
        """Advance one fixed time step with the given input."""
        self.solver.step(self.state, control, self.config.dt)
        self.step_count += 1
        self.total_broken += self.solver.last_broken
        self.total_cut += self.solver.last_cut

    def run(self, n: int, control: Control = None):
        """Advance ``n`` steps, reusing the same control for every step."""
        for _ in range(int(n)):
            self.step(control)

    def positions(self) -> np.ndarray:
        """Current node positions as a host array [particle_count, 2]."""
        return self.state.particle_q.numpy()

    def snapshot(self) -> Snapshot:
        """Read-only copies of positions, fixed flags, links and link strains."""
        model = self.model
        self.solver.eval_link_metrics(self.state)

        if model.link_count > 0:
            links = model.link_pairs()
            strains = model.link_strain.numpy()[:model.link_count]
        else:
            links = np.zeros((0, 2), dtype=np.int32)
            strains = np.zeros(0, dtype=np.float32)

        return Snapshot(
            positions=_read_only(self.state.particle_q.numpy()),
            fixed=_read_only(model.particle_fixed.numpy() != 0),
            links=_read_only(links),
            strains=_read_only(strains),
        )

    def node(self, index: int) -> Node:
        """Frozen view of one node."""
        i = self.model.check_node_index(index)
        state = self.state

        def vec(arr):
            v = arr.numpy()[i]
            return (float(v[0]), float(v[1]))

        return Node(
            index=i,
            position=vec(state.particle_q),
            previous_position=vec(state.particle_q_prev),
            velocity=vec(state.particle_qd),
            force=vec(state.particle_f),
            mass=float(self.model.particle_mass.numpy()[i]),
            fixed=bool(self.model.particle_fixed.numpy()[i]),
        )

    def set_node_position(self, index: int, pos):
        """Move one node directly (fixed nodes included)."""
        self.solver.set_node_position(self.state, index, pos)

    def summary(self) -> dict:
        """Settings and counters, for banners and logs."""
        info = asdict(self.config)
        info.update(nodes=self.node_count, links=self.link_count, steps=self.step_count,
                    broken=self.total_broken, cut=self.total_cut)
        return info
