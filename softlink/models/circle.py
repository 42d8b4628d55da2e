# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Circle-based spring network model with Delaunay triangulation

from typing import Optional

import numpy as np
from scipy.spatial import Delaunay

from ..sim.builder import ModelBuilder
from ..sim.errors import ConfigurationError
from ..sim.model import Model


class CircleModel(Model):
    """
    Spring network with circular geometry using Delaunay triangulation.

    Creates a mesh from concentric rings of points; every triangle edge
    becomes a link whose rest length is its initial length.

    Args:
        radius: Circle radius in world units
        num_boundary: Number of points on the boundary
        num_rings: Number of interior concentric rings (0 = boundary only)
        center: Center of the circle (cx, cy)
        mass: Mass of every node
        pin: 'top' pins the boundary node(s) closest to the top of the screen,
            'center' pins the center node, 'none' leaves everything free
        break_ratio: If set, each link breaks once longer than ``break_ratio``
            times its rest length
        device: Warp device ('cpu' or 'cuda')

    Example:
        >>> model = CircleModel(radius=120.0, num_boundary=24, num_rings=3)
        >>> state = model.state()
    """

    PIN_PATTERNS = ("top", "center", "none")

    def __init__(self, radius: float = 120.0, num_boundary: int = 24, num_rings: int = 3,
                 center: tuple = (400.0, 250.0), mass: float = 1.0, pin: str = "top",
                 break_ratio: Optional[float] = None, device='cpu'):

        super().__init__(device=device)

        if num_boundary < 3:
            raise ConfigurationError(f"Need at least 3 boundary points, got {num_boundary}")
        if pin not in self.PIN_PATTERNS:
            raise ConfigurationError(f"Unknown pin pattern {pin!r}; expected one of {self.PIN_PATTERNS}")
        if break_ratio is not None and not break_ratio > 1.0:
            raise ConfigurationError(f"Break ratio must be > 1, got {break_ratio!r}")

        cx, cy = center
        self.radius = radius
        self.center = center

        print(f"Creating circle network:")
        print(f"  Radius: {radius}")
        print(f"  Boundary points: {num_boundary}")
        print(f"  Interior rings: {num_rings}")
        print(f"  Center: ({cx:.2f}, {cy:.2f})")

        # Generate points on the unit circle, then scale
        points_normalized = self._generate_points(num_boundary, num_rings)
        n_points = len(points_normalized)

        print(f"  Generated {n_points} points ({num_boundary} boundary + {n_points - num_boundary - 1} interior + 1 center)")

        # Delaunay triangulation
        tri = Delaunay(points_normalized)
        triangles = self._filter_triangles(points_normalized, tri.simplices)

        print(f"  Delaunay: {len(triangles)} valid triangles (removed {len(tri.simplices) - len(triangles)})")

        points = points_normalized * radius
        points[:, 0] += cx
        points[:, 1] += cy

        builder = ModelBuilder()
        fixed = self._pinned_nodes(points, num_boundary, pin)
        for i, p in enumerate(points):
            builder.add_node(p, mass=mass, fixed=i in fixed)

        for a, b in self._edges_from_triangles(triangles):
            rest = float(np.linalg.norm(points[b] - points[a]))
            threshold = None if break_ratio is None else rest * break_ratio
            builder.add_link(a, b, rest_length=rest, break_threshold=threshold)

        builder.finalize(model=self)

        print(f"✓ Created circle network:")
        print(f"  - {self.particle_count} nodes")
        print(f"  - {self.link_count} links")
        print(f"  - {len(fixed)} pinned")

    def _generate_points(self, num_boundary, num_rings):
        """Generate points of a unit circle mesh: boundary, interior rings, center."""
        all_points = []

        # Boundary points
        angles = np.linspace(0, 2 * np.pi, num_boundary, endpoint=False)
        all_points.append(np.c_[np.cos(angles), np.sin(angles)])

        # Interior rings
        for ring in range(1, num_rings + 1):
            ring_radius = (num_rings - ring + 1) / (num_rings + 1)
            angle_offset = np.pi / num_boundary * ring
            num_pts_ring = max(8, int(num_boundary * ring_radius))
            ring_angles = np.linspace(0, 2 * np.pi, num_pts_ring, endpoint=False) + angle_offset
            all_points.append(np.c_[ring_radius * np.cos(ring_angles), ring_radius * np.sin(ring_angles)])

        # Center point
        all_points.append(np.array([[0.0, 0.0]]))

        return np.vstack(all_points)

    def _filter_triangles(self, points, triangles_raw):
        """Keep non-degenerate triangles whose centroid lies inside the unit circle."""
        valid_triangles = []

        for simplex in triangles_raw:
            tri_points = points[simplex]
            centroid = np.mean(tri_points, axis=0)

            if np.linalg.norm(centroid) <= 1.01:
                p0, p1, p2 = tri_points
                e1 = p1 - p0
                e2 = p2 - p0
                area = 0.5 * abs(e1[0] * e2[1] - e1[1] * e2[0])

                if area >= 1e-8:
                    valid_triangles.append(simplex)

        return valid_triangles

    def _edges_from_triangles(self, triangles):
        """Unique triangle edges as sorted (a, b) pairs, in deterministic order."""
        edge_set = set()
        for tri in triangles:
            for a, b in ((tri[0], tri[1]), (tri[1], tri[2]), (tri[2], tri[0])):
                edge_set.add((int(min(a, b)), int(max(a, b))))
        return sorted(edge_set)

    def _pinned_nodes(self, points, num_boundary, pin):
        """Indices of nodes that start fixed."""
        if pin == "none":
            return set()
        if pin == "center":
            return {len(points) - 1}

        # Screen space: top is the smallest y
        boundary_y = points[:num_boundary, 1]
        top = np.flatnonzero(np.isclose(boundary_y, boundary_y.min()))
        return {int(i) for i in top}
