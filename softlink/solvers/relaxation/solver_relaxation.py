# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Position-based relaxation solver for 2D node-link systems

from enum import Enum

import numpy as np
import warp as wp

from ...sim.errors import ConfigurationError, InvariantError
from ..solver import SolverBase
from .coloring import flatten_color_groups, link_coloring_2d
from .kernels_links import (
    eval_link_cut_2d,
    relax_links_colored_2d,
    relax_links_sequential_2d,
)
from .kernels_particle import (
    apply_drag_2d,
    apply_gravity_2d,
    apply_impulses_2d,
    apply_pointer_force_2d,
    differentiate_2d,
    integrate_euler_2d,
    integrate_verlet_2d,
    set_particle_position_2d,
)


class IntegratorMode(Enum):
    """Integration rule, fixed per solver instance."""
    SEMI_IMPLICIT_EULER = "euler"    # integrate, relax, then differentiate
    VELOCITY_VERLET = "verlet"       # self-contained, no differentiate pass


class RelaxationOrder(Enum):
    """Order in which links are visited during a relaxation pass."""
    SEQUENTIAL = "sequential"        # container order, single thread
    COLORED = "colored"              # color classes in sequence, links of one class in parallel


class SolverRelaxation(SolverBase):
    """
    Iterative constraint-relaxation solver for ropes, cloth and spring networks.

    Each step accumulates gravity, drag and interactive forces, integrates
    the free nodes, then nudges the endpoints of every link toward its rest
    length for a fixed number of passes. This is Gauss-Seidel relaxation,
    not a direct solve: more passes approximate a stiffer material but the
    constraints are only approached, never satisfied exactly.

    With the semi-implicit Euler rule the velocity is re-derived from the
    corrected displacement after relaxation, which damps the constrained
    system without stiff springs.

    Example:
        >>> model = RopeModel(num_nodes=20, spacing=12.5)
        >>> solver = SolverRelaxation(model, gravity=18.0, relaxation_passes=4)
        >>> state = model.state()
        >>>
        >>> for i in range(100):
        >>>     solver.step(state, dt=0.05)
    """

    def __init__(
        self,
        model,
        integrator=IntegratorMode.SEMI_IMPLICIT_EULER,
        dt: float = 0.05,
        gravity: float = 18.0,
        drag: float = 0.0,
        rigidity: float = 1.0,
        relaxation_passes: int = 1,
        compression_factor: float = 1.0,
        order=RelaxationOrder.SEQUENTIAL,
        capture_radius: float = 20.0,
        pointer_strength: float = 1.0,
    ):
        """
        Initialize the relaxation solver.

        Args:
            model: The 2D Model to be simulated
            integrator: IntegratorMode or its value ('euler' / 'verlet')
            dt: Default time step used when step() gets none
            gravity: Gravity magnitude g; free nodes receive (0, g * m)
            drag: Drag coefficient k; free nodes receive -v * k
            rigidity: Fraction of the length error corrected per link visit
            relaxation_passes: Passes over all links per step (0 disables relaxation)
            compression_factor: Extra scale on the correction of compressed links (1.0 = symmetric)
            order: RelaxationOrder or its value ('sequential' / 'colored')
            capture_radius: Pointer forcing reaches nodes closer than this
            pointer_strength: Force per unit of pointer displacement
        """
        super().__init__(model)

        try:
            self.integrator = IntegratorMode(integrator)
            self.order = RelaxationOrder(order)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if not dt > 0.0:
            raise ConfigurationError(f"Time step must be > 0, got {dt!r}")
        if int(relaxation_passes) < 0:
            raise ConfigurationError(f"Relaxation pass count must be >= 0, got {relaxation_passes!r}")
        if capture_radius < 0.0:
            raise ConfigurationError(f"Capture radius must be >= 0, got {capture_radius!r}")

        self.dt = float(dt)
        self.gravity = float(gravity)
        self.drag = float(drag)
        self.rigidity = float(rigidity)
        self.relaxation_passes = int(relaxation_passes)
        self.compression_factor = float(compression_factor)
        self.capture_radius = float(capture_radius)
        self.pointer_strength = float(pointer_strength)

        # Link coloring cache (colored order only)
        self._color_version = -1
        self._color_links = None
        self._color_ranges = []

        # Links removed by the last step
        self.last_broken = 0
        self.last_cut = 0

    # ========================================================================
    # FORCING
    # ========================================================================

    def apply_gravity(self, state, g: float = None):
        """Add (0, g * m) to the force of every free node."""
        model = self.model
        wp.launch(
            kernel=apply_gravity_2d,
            dim=model.particle_count,
            inputs=[state.particle_f, model.particle_mass, model.particle_fixed,
                    self.gravity if g is None else float(g)],
            device=model.device,
        )

    def apply_drag(self, state, k: float = None):
        """Add -v * k to the force of every free node."""
        model = self.model
        wp.launch(
            kernel=apply_drag_2d,
            dim=model.particle_count,
            inputs=[state.particle_f, state.particle_qd, model.particle_fixed,
                    self.drag if k is None else float(k)],
            device=model.device,
        )

    def apply_impulses(self, state, impulses):
        """
        Add per-node forces unconditionally (fixed nodes included; they ignore forces anyway).

        Args:
            impulses: numpy array or wp.array of shape [particle_count, 2]
        """
        model = self.model
        if isinstance(impulses, wp.array):
            if impulses.shape[0] != model.particle_count:
                raise InvariantError(f"Impulse array has {impulses.shape[0]} entries for {model.particle_count} nodes")
            impulses_wp = impulses
        else:
            impulses_np = np.asarray(impulses, dtype=np.float32)
            if impulses_np.shape != (model.particle_count, 2):
                raise InvariantError(
                    f"Impulse array has shape {impulses_np.shape}, expected ({model.particle_count}, 2)"
                )
            impulses_wp = wp.array(impulses_np, dtype=wp.vec2, device=model.device)

        wp.launch(
            kernel=apply_impulses_2d,
            dim=model.particle_count,
            inputs=[state.particle_f, impulses_wp],
            device=model.device,
        )

    def apply_pointer_force(self, state, pointer, delta):
        """Push free nodes within the capture radius of ``pointer`` by ``delta * pointer_strength``."""
        model = self.model
        wp.launch(
            kernel=apply_pointer_force_2d,
            dim=model.particle_count,
            inputs=[
                state.particle_q,
                state.particle_f,
                model.particle_fixed,
                wp.vec2(float(pointer[0]), float(pointer[1])),
                wp.vec2(float(delta[0]), float(delta[1])),
                self.capture_radius,
                self.pointer_strength,
            ],
            device=model.device,
        )

    def apply_forcing(self, state, control):
        """Interactive forcing from a Control: pointer drag and explicit impulses."""
        if control is None:
            return
        if control.drag and control.pointer is not None:
            self.apply_pointer_force(state, control.pointer, control.pointer_delta)
        if control.impulses is not None:
            self.apply_impulses(state, control.impulses)

    # ========================================================================
    # INTEGRATION
    # ========================================================================

    def integrate(self, state, dt: float = None):
        """Advance free nodes with the configured integration rule."""
        model = self.model
        dt = self.dt if dt is None else float(dt)

        if self.integrator is IntegratorMode.SEMI_IMPLICIT_EULER:
            kernel = integrate_euler_2d
        else:
            kernel = integrate_verlet_2d

        wp.launch(
            kernel=kernel,
            dim=model.particle_count,
            inputs=[
                state.particle_q,
                state.particle_q_prev,
                state.particle_qd,
                state.particle_f,
                model.particle_inv_mass,
                model.particle_fixed,
                dt,
            ],
            device=model.device,
        )

    def differentiate(self, state, dt: float = None):
        """Re-derive velocity from the corrected displacement and clear forces (Euler rule only)."""
        model = self.model
        dt = self.dt if dt is None else float(dt)

        wp.launch(
            kernel=differentiate_2d,
            dim=model.particle_count,
            inputs=[
                state.particle_q,
                state.particle_q_prev,
                state.particle_qd,
                state.particle_f,
                model.particle_fixed,
                dt,
            ],
            device=model.device,
        )

    # ========================================================================
    # CONSTRAINT RELAXATION
    # ========================================================================

    def _update_coloring(self):
        """Recolor the links if the topology changed since the last coloring."""
        model = self.model
        if self._color_version == model.link_version:
            return

        _, color_groups = link_coloring_2d(model.link_pairs(), model.particle_count)
        color_links_np, self._color_ranges = flatten_color_groups(color_groups)
        self._color_links = wp.array(color_links_np, dtype=int, device=model.device)
        self._color_version = model.link_version

    def relax(self, state, passes: int = None):
        """
        Run relaxation passes over all links.

        Args:
            state: State whose positions are corrected in place
            passes: Number of passes; defaults to ``relaxation_passes``
        """
        model = self.model
        passes = self.relaxation_passes if passes is None else int(passes)
        if passes <= 0 or model.link_count == 0:
            return

        common = [state.particle_q, model.particle_mass, model.particle_fixed,
                  model.link_indices, model.link_rest_length]

        if self.order is RelaxationOrder.SEQUENTIAL:
            for _ in range(passes):
                wp.launch(
                    kernel=relax_links_sequential_2d,
                    dim=1,
                    inputs=common + [model.link_count, self.rigidity, self.compression_factor],
                    device=model.device,
                )
            return

        self._update_coloring()
        for _ in range(passes):
            for start, count in self._color_ranges:
                wp.launch(
                    kernel=relax_links_colored_2d,
                    dim=count,
                    inputs=common + [self._color_links, start, self.rigidity, self.compression_factor],
                    device=model.device,
                )

    # ========================================================================
    # TOPOLOGY MAINTENANCE
    # ========================================================================

    def apply_breakage(self, state) -> int:
        """
        Remove links stretched beyond their breakage threshold.

        Returns:
            int: Number of links removed
        """
        keep = self.eval_link_metrics(state)
        if keep.all():
            return 0
        return self.model.retain_links(keep)

    def apply_cut(self, state, start, end) -> int:
        """
        Remove links whose segment crosses the tool segment ``start``-``end``.

        Returns:
            int: Number of links removed
        """
        model = self.model
        if model.link_count == 0:
            return 0

        keep = self._link_scratch()
        wp.launch(
            kernel=eval_link_cut_2d,
            dim=model.link_count,
            inputs=[
                state.particle_q,
                model.link_indices,
                wp.vec2(float(start[0]), float(start[1])),
                wp.vec2(float(end[0]), float(end[1])),
            ],
            outputs=[keep],
            device=model.device,
        )
        return model.retain_links(keep.numpy()[:model.link_count] != 0)

    # ========================================================================
    # EXTERNAL OVERRIDE
    # ========================================================================

    def set_node_position(self, state, index: int, pos):
        """Move one node directly, fixed or not. Only the current position changes."""
        model = self.model
        i = model.check_node_index(index)
        wp.launch(
            kernel=set_particle_position_2d,
            dim=1,
            inputs=[state.particle_q, i, wp.vec2(float(pos[0]), float(pos[1]))],
            device=model.device,
        )

    def apply_anchor_override(self, state, control):
        """Snap every node in ``control.held_anchors`` to the pointer."""
        if control is None or not control.held_anchors:
            return
        for index in control.held_anchors:
            self.model.check_node_index(index)
        if control.pointer is None:
            return
        for index in control.held_anchors:
            self.set_node_position(state, index, control.pointer)

    # ========================================================================
    # STEP
    # ========================================================================

    def step(self, state, control=None, dt: float = None):
        """
        Advance the simulation by one fixed time step, in place.

        Sequence: clear forces, gravity, drag, interactive forcing,
        integrate, relaxation passes, differentiate (Euler rule only),
        breakage, cut (when the gesture is active), anchor override.

        Args:
            state: The state to advance
            control: Optional Control with this step's sampled input
            dt: The time step; defaults to the solver's dt

        Returns:
            The advanced state
        """
        dt = self.dt if dt is None else float(dt)
        if not dt > 0.0:
            raise ConfigurationError(f"Time step must be > 0, got {dt!r}")

        state.particle_f.zero_()

        self.apply_gravity(state)
        self.apply_drag(state)
        self.apply_forcing(state, control)

        self.integrate(state, dt)
        self.relax(state)

        if self.integrator is IntegratorMode.SEMI_IMPLICIT_EULER:
            self.differentiate(state, dt)

        self.last_broken = 0
        self.last_cut = 0

        if self.model.has_break_thresholds:
            self.last_broken = self.apply_breakage(state)

        if control is not None and control.cut and control.has_segment:
            self.last_cut = self.apply_cut(state, control.pointer_prev, control.pointer)

        self.apply_anchor_override(state, control)

        return state
