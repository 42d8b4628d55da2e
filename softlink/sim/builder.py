# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Host-side builder for hand-made node-link graphs

from typing import Optional, Tuple

import numpy as np

from .errors import ConfigurationError
from .model import Model, NO_BREAK_THRESHOLD


class ModelBuilder:
    """
    Collects nodes and links in Python lists and converts them to a Model.

    Nothing is validated until :meth:`finalize`, which rejects empty
    topologies, non-positive masses and links that reference missing or
    identical nodes.

    Example:
        >>> builder = ModelBuilder()
        >>> a = builder.add_node((0.0, 0.0), fixed=True)
        >>> b = builder.add_node((10.0, 0.0))
        >>> builder.add_link(a, b)
        >>> model = builder.finalize(device='cpu')
    """

    def __init__(self):
        self.node_positions = []
        self.node_masses = []
        self.node_fixed = []

        self.link_pairs = []
        self.link_rest_lengths = []
        self.link_break_thresholds = []

    @property
    def node_count(self) -> int:
        return len(self.node_positions)

    @property
    def link_count(self) -> int:
        return len(self.link_pairs)

    def add_node(self, pos: Tuple[float, float], mass: float = 1.0, fixed: bool = False) -> int:
        """
        Add a node and return its index.

        Args:
            pos: Initial position (x, y)
            mass: Node mass, must be > 0 (checked in finalize)
            fixed: Pinned nodes never move on their own
        """
        self.node_positions.append((float(pos[0]), float(pos[1])))
        self.node_masses.append(float(mass))
        self.node_fixed.append(bool(fixed))
        return len(self.node_positions) - 1

    def add_link(self, a: int, b: int, rest_length: Optional[float] = None,
                 break_threshold: Optional[float] = None) -> int:
        """
        Add a distance constraint between nodes ``a`` and ``b`` and return its index.

        Args:
            a, b: Endpoint node indices
            rest_length: Target distance; defaults to the current distance between the nodes
            break_threshold: Length beyond which the link is removed; None never breaks
        """
        if rest_length is None:
            if not (0 <= a < self.node_count and 0 <= b < self.node_count):
                raise ConfigurationError(
                    f"Cannot measure rest length of link ({a}, {b}): only {self.node_count} nodes exist"
                )
            pa = np.array(self.node_positions[a])
            pb = np.array(self.node_positions[b])
            rest_length = float(np.linalg.norm(pb - pa))

        self.link_pairs.append((int(a), int(b)))
        self.link_rest_lengths.append(float(rest_length))
        if break_threshold is None:
            self.link_break_thresholds.append(NO_BREAK_THRESHOLD)
        else:
            threshold = float(break_threshold)
            if not threshold > 0.0:
                raise ConfigurationError(f"Breakage threshold must be > 0, got {break_threshold!r}")
            self.link_break_thresholds.append(threshold)
        return len(self.link_pairs) - 1

    def pin_unreferenced(self, park_position: Tuple[float, float] = (-1.0e4, -1.0e4)) -> int:
        """
        Pin every node that no link references and move it to ``park_position``.

        Used by generators that lay out a full grid and then drop links, so
        that orphaned nodes neither fall nor show up on screen.

        Returns:
            int: Number of nodes parked
        """
        referenced = set()
        for a, b in self.link_pairs:
            referenced.add(a)
            referenced.add(b)

        parked = 0
        for i in range(self.node_count):
            if i not in referenced:
                self.node_positions[i] = (float(park_position[0]), float(park_position[1]))
                self.node_fixed[i] = True
                parked += 1
        return parked

    def finalize(self, device='cpu', model: Optional[Model] = None) -> Model:
        """
        Validate the collected topology and upload it.

        Args:
            device: Warp device for the model arrays
            model: Optional pre-constructed (empty) Model to fill, used by generator subclasses

        Returns:
            Model: The initialized model
        """
        if model is None:
            model = Model(device=device)

        model._setup_particles(
            np.array(self.node_positions, dtype=np.float32).reshape(-1, 2),
            np.array(self.node_masses, dtype=np.float32),
            np.array(self.node_fixed, dtype=bool),
        )
        model._setup_links(
            np.array(self.link_pairs, dtype=np.int64).reshape(-1, 2),
            np.array(self.link_rest_lengths, dtype=np.float32),
            np.array(self.link_break_thresholds, dtype=np.float32),
        )
        return model
