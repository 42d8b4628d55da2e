# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# 2D Model class for node-link simulations

import numpy as np
import warp as wp

from .errors import ConfigurationError, InvariantError
from .state import State


# Sentinel stored in link_break_threshold for links that never break
NO_BREAK_THRESHOLD = -1.0


class Model:
    """
    Represents the static definition and the link topology of a 2D node-link system.

    Nodes are stored as parallel arrays and never destroyed. Links reference
    nodes by index; the link arrays are replaced (never edited in place) when
    breakage or cutting removes links, and ``link_version`` is bumped so that
    solvers can invalidate anything derived from the link set.

    Key Features:
        - Node properties (initial position, mass, fixed flag)
        - Ordered link collection (endpoint indices, rest length, breakage threshold)
        - Per-link metrics cache (current length and strain) for rendering
    """

    def __init__(self, device='cpu'):
        """
        Initialize an empty 2D Model object.

        Args:
            device (str): Device on which the Model's data will be allocated ('cpu' or 'cuda')
        """
        self.device = wp.get_device(device)

        # Node properties
        self.particle_q = None              # Initial positions, shape [particle_count], vec2
        self.particle_qd = None             # Initial velocities, shape [particle_count], vec2
        self.particle_mass = None           # Node mass, shape [particle_count], float
        self.particle_inv_mass = None       # Node inverse mass, shape [particle_count], float
        self.particle_fixed = None          # 1 for pinned nodes, shape [particle_count], int
        self.particle_count = 0             # Total number of nodes

        # Link properties
        self.link_indices = None            # Link connectivity [a0, b0, a1, b1, ...], shape [link_count*2], int
        self.link_rest_length = None        # Rest length per link, shape [link_count], float
        self.link_break_threshold = None    # Breakage length per link (negative = never), shape [link_count], float
        self.link_length = None             # Current length cache, shape [link_count], float
        self.link_strain = None             # Strain cache ε = (L - L₀)/L₀, shape [link_count], float
        self.link_count = 0                 # Total number of links
        self.link_version = 0               # Bumped on every topology change
        self._breakable_count = 0

    def state(self) -> State:
        """
        Create and return a new State object for this model.

        The returned state is initialized with the initial configuration
        from the model description; previous positions equal the positions.

        Returns:
            State: The state object
        """
        s = State()

        if self.particle_count > 0:
            s.particle_q = wp.clone(self.particle_q)
            s.particle_q_prev = wp.clone(self.particle_q)
            s.particle_qd = wp.clone(self.particle_qd)
            s.particle_f = wp.zeros(self.particle_count, dtype=wp.vec2, device=self.device)

        return s

    @property
    def has_break_thresholds(self) -> bool:
        """True if at least one active link can break."""
        return self._breakable_count > 0

    # ========================================================================
    # SETUP (shared by ModelBuilder and the topology generators)
    # ========================================================================

    def _setup_particles(self, positions, masses, fixed):
        """
        Validate and upload node arrays.

        Args:
            positions: Array-like of shape [n, 2]
            masses: Array-like of shape [n], every entry finite and > 0
            fixed: Array-like of shape [n], truthy for pinned nodes
        """
        pos_np = np.asarray(positions, dtype=np.float32).reshape(-1, 2)
        mass_np = np.asarray(masses, dtype=np.float32).reshape(-1)
        fixed_np = np.asarray(fixed, dtype=bool).reshape(-1)

        n_particles = len(pos_np)
        if n_particles == 0:
            raise ConfigurationError("Topology is empty: at least one node is required")
        if len(mass_np) != n_particles or len(fixed_np) != n_particles:
            raise ConfigurationError(
                f"Node arrays disagree in length: {n_particles} positions, "
                f"{len(mass_np)} masses, {len(fixed_np)} fixed flags"
            )
        if not np.all(np.isfinite(pos_np)):
            raise ConfigurationError("Node positions must be finite")

        bad_mass = np.flatnonzero(~np.isfinite(mass_np) | (mass_np <= 0.0))
        if len(bad_mass) > 0:
            i = int(bad_mass[0])
            raise ConfigurationError(f"Node {i} has invalid mass {mass_np[i]!r}; mass must be finite and > 0")

        vel_np = np.zeros((n_particles, 2), dtype=np.float32)

        self.particle_count = n_particles
        self.particle_q = wp.array(pos_np, dtype=wp.vec2, device=self.device)
        self.particle_qd = wp.array(vel_np, dtype=wp.vec2, device=self.device)
        self.particle_mass = wp.array(mass_np, dtype=float, device=self.device)
        self.particle_inv_mass = wp.array(1.0 / mass_np, dtype=float, device=self.device)
        self.particle_fixed = wp.array(fixed_np.astype(np.int32), dtype=int, device=self.device)

    def _setup_links(self, pairs, rest_lengths, break_thresholds):
        """
        Validate and upload link arrays. Nodes must already be set up.

        Args:
            pairs: Array-like of shape [m, 2] with endpoint node indices
            rest_lengths: Array-like of shape [m], every entry >= 0
            break_thresholds: Array-like of shape [m]; NO_BREAK_THRESHOLD (or any
                negative value) for links that never break, otherwise > 0
        """
        pairs_np = np.asarray(pairs, dtype=np.int64).reshape(-1, 2)
        rest_np = np.asarray(rest_lengths, dtype=np.float32).reshape(-1)
        thr_np = np.asarray(break_thresholds, dtype=np.float32).reshape(-1)

        n_links = len(pairs_np)
        if len(rest_np) != n_links or len(thr_np) != n_links:
            raise ConfigurationError(
                f"Link arrays disagree in length: {n_links} pairs, "
                f"{len(rest_np)} rest lengths, {len(thr_np)} thresholds"
            )

        if n_links > 0:
            out_of_range = np.flatnonzero((pairs_np < 0).any(axis=1) | (pairs_np >= self.particle_count).any(axis=1))
            if len(out_of_range) > 0:
                k = int(out_of_range[0])
                raise ConfigurationError(
                    f"Link {k} references node pair {tuple(pairs_np[k])} outside [0, {self.particle_count})"
                )

            self_links = np.flatnonzero(pairs_np[:, 0] == pairs_np[:, 1])
            if len(self_links) > 0:
                k = int(self_links[0])
                raise ConfigurationError(f"Link {k} connects node {pairs_np[k, 0]} to itself")

            bad_rest = np.flatnonzero(~np.isfinite(rest_np) | (rest_np < 0.0))
            if len(bad_rest) > 0:
                k = int(bad_rest[0])
                raise ConfigurationError(f"Link {k} has invalid rest length {rest_np[k]!r}")

            bad_thr = np.flatnonzero(np.isnan(thr_np) | (thr_np == 0.0))
            if len(bad_thr) > 0:
                k = int(bad_thr[0])
                raise ConfigurationError(f"Link {k} has invalid breakage threshold {thr_np[k]!r}")

        thr_np = np.where(thr_np < 0.0, np.float32(NO_BREAK_THRESHOLD), thr_np).astype(np.float32)
        self._upload_links(pairs_np.astype(np.int32), rest_np, thr_np)

    def _upload_links(self, pairs_np, rest_np, thr_np):
        """Replace the link arrays with the given (already validated) host arrays."""
        device = self.device

        self.link_count = len(pairs_np)
        self.link_indices = wp.array(pairs_np.reshape(-1).astype(np.int32), dtype=int, device=device)
        self.link_rest_length = wp.array(rest_np.astype(np.float32), dtype=float, device=device)
        self.link_break_threshold = wp.array(thr_np.astype(np.float32), dtype=float, device=device)

        self.link_length = wp.zeros(self.link_count, dtype=float, device=device)
        self.link_strain = wp.zeros(self.link_count, dtype=float, device=device)

        self._breakable_count = int(np.count_nonzero(thr_np >= 0.0))
        self.link_version += 1

    # ========================================================================
    # TOPOLOGY QUERIES AND MAINTENANCE
    # ========================================================================

    def link_pairs(self) -> np.ndarray:
        """Link endpoint indices as a host array of shape [link_count, 2]."""
        return self.link_indices.numpy().reshape(-1, 2)

    def retain_links(self, keep) -> int:
        """
        Keep only the links for which ``keep`` is true, preserving their order.

        Args:
            keep: Boolean array-like of shape [link_count]

        Returns:
            int: Number of links removed
        """
        keep_np = np.asarray(keep, dtype=bool).reshape(-1)
        if len(keep_np) != self.link_count:
            raise InvariantError(f"Link mask has {len(keep_np)} entries for {self.link_count} links")

        removed = int(self.link_count - np.count_nonzero(keep_np))
        if removed == 0:
            return 0

        self._upload_links(
            self.link_pairs()[keep_np],
            self.link_rest_length.numpy()[keep_np],
            self.link_break_threshold.numpy()[keep_np],
        )
        return removed

    def check_node_index(self, index) -> int:
        """Return ``index`` as int, raising InvariantError if it names no node."""
        i = int(index)
        if i < 0 or i >= self.particle_count:
            raise InvariantError(f"Node index {index} outside [0, {self.particle_count})")
        return i
