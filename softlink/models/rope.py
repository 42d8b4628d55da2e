# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Rope (chain of nodes) model

from typing import Optional

import numpy as np

from ..sim.builder import ModelBuilder
from ..sim.errors import ConfigurationError
from ..sim.model import Model


class RopeModel(Model):
    """
    A straight chain of nodes joined by links between neighbours.

    Args:
        num_nodes: Number of nodes along the rope. Default 20.
        spacing: Initial distance between neighbouring nodes
        origin: Position of the first node (x, y)
        direction: Direction the rope is laid out in; normalized internally.
            Default (0, 1) hangs straight down in screen space.
        rest_length: Link rest length. Defaults to ``spacing``; a larger value
            starts the rope compressed, a smaller one pre-stretched.
        mass: Mass of every node
        pin: 'first' (default), 'both' ends, or 'none'
        break_threshold: Link breakage length, or None for an unbreakable rope
        device: Warp device ('cpu' or 'cuda')

    Example:
        >>> model = RopeModel(num_nodes=20, spacing=10.0, rest_length=12.5)
        >>> state = model.state()
    """

    PIN_PATTERNS = ("first", "both", "none")

    def __init__(self, num_nodes: int = 20, spacing: float = 10.0,
                 origin: tuple = (400.0, 100.0), direction: tuple = (0.0, 1.0),
                 rest_length: Optional[float] = None, mass: float = 1.0,
                 pin: str = "first", break_threshold: Optional[float] = None,
                 device='cpu'):

        super().__init__(device=device)

        if num_nodes < 1:
            raise ConfigurationError(f"A rope needs at least one node, got {num_nodes}")
        if pin not in self.PIN_PATTERNS:
            raise ConfigurationError(f"Unknown pin pattern {pin!r}; expected one of {self.PIN_PATTERNS}")

        d = np.array(direction, dtype=float)
        norm = np.linalg.norm(d)
        if norm < 1e-12:
            raise ConfigurationError("Rope direction must be a non-zero vector")
        d = d / norm

        if rest_length is None:
            rest_length = spacing

        builder = ModelBuilder()
        origin = np.array(origin, dtype=float)
        for i in range(num_nodes):
            fixed = (i == 0 and pin in ("first", "both")) or (i == num_nodes - 1 and pin == "both")
            builder.add_node(origin + d * spacing * i, mass=mass, fixed=fixed)

        for i in range(num_nodes - 1):
            builder.add_link(i, i + 1, rest_length=rest_length, break_threshold=break_threshold)

        builder.finalize(model=self)

        self.spacing = spacing
        self.rest_length = rest_length

        print(f"✓ Created rope: {self.particle_count} nodes, {self.link_count} links (pin={pin})")
