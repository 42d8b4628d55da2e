# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Link relaxation, link metrics and cut-test kernels

import warp as wp


@wp.func
def relax_link_2d(
    x: wp.array(dtype=wp.vec2),
    mass: wp.array(dtype=float),
    fixed: wp.array(dtype=int),
    link_indices: wp.array(dtype=int),
    rest_lengths: wp.array(dtype=float),
    s: int,
    rigidity: float,
    compression_factor: float,
):
    """
    Move both endpoints of link ``s`` toward its rest length.

        r    = x_b - x_a
        offs = r/|r| * (|r| - L0) * k / (m_a + m_b)
        x_a += offs / m_a,  x_b -= offs / m_b

    k is ``rigidity``, scaled by ``compression_factor`` while the link is
    shorter than its rest length. Coincident endpoints get no correction.
    Fixed endpoints are not moved and their share is not redistributed.
    """
    i = link_indices[s * 2 + 0]
    j = link_indices[s * 2 + 1]

    xi = x[i]
    xj = x[j]
    mi = mass[i]
    mj = mass[j]

    r = xj - xi
    dist = wp.length(r)

    norm = wp.vec2(0.0, 0.0)
    if dist > 0.0:
        norm = r / dist

    diff = dist - rest_lengths[s]

    k = rigidity
    if diff < 0.0:
        k = rigidity * compression_factor

    offs = norm * (diff * k / (mi + mj))

    if fixed[i] == 0:
        x[i] = xi + offs / mi
    if fixed[j] == 0:
        x[j] = xj - offs / mj


@wp.kernel
def relax_links_sequential_2d(
    x: wp.array(dtype=wp.vec2),
    mass: wp.array(dtype=float),
    fixed: wp.array(dtype=int),
    link_indices: wp.array(dtype=int),
    rest_lengths: wp.array(dtype=float),
    link_count: int,
    rigidity: float,
    compression_factor: float,
):
    """
    One Gauss-Seidel pass in container order. Launch with dim=1: a single
    thread walks every link so each correction sees the previous ones.
    """
    for s in range(link_count):
        relax_link_2d(x, mass, fixed, link_indices, rest_lengths, s, rigidity, compression_factor)


@wp.kernel
def relax_links_colored_2d(
    x: wp.array(dtype=wp.vec2),
    mass: wp.array(dtype=float),
    fixed: wp.array(dtype=int),
    link_indices: wp.array(dtype=int),
    rest_lengths: wp.array(dtype=float),
    color_links: wp.array(dtype=int),
    color_start: int,
    rigidity: float,
    compression_factor: float,
):
    """
    Relax one color class in parallel. Links of the same color share no
    node, so the read-modify-write on endpoint positions cannot race.
    """
    tid = wp.tid()
    s = color_links[color_start + tid]
    relax_link_2d(x, mass, fixed, link_indices, rest_lengths, s, rigidity, compression_factor)


@wp.kernel
def eval_link_metrics_2d(
    x: wp.array(dtype=wp.vec2),
    link_indices: wp.array(dtype=int),
    rest_lengths: wp.array(dtype=float),
    break_thresholds: wp.array(dtype=float),
    link_length: wp.array(dtype=float),   # Output: current length
    link_strain: wp.array(dtype=float),   # Output: ε = (L - L₀) / L₀
    keep: wp.array(dtype=int),            # Output: 0 if the link exceeds its threshold
):
    """Cache length and strain per link and flag links stretched past their breakage threshold."""
    tid = wp.tid()

    i = link_indices[tid * 2 + 0]
    j = link_indices[tid * 2 + 1]

    l = wp.length(x[j] - x[i])
    link_length[tid] = l

    rest = rest_lengths[tid]
    strain = 0.0
    if rest > 0.0:
        strain = (l - rest) / rest
    link_strain[tid] = strain

    # Negative threshold: link never breaks
    flag = 1
    threshold = break_thresholds[tid]
    if threshold >= 0.0:
        if l > threshold:
            flag = 0
    keep[tid] = flag


@wp.func
def ccw_2d(a: wp.vec2, b: wp.vec2, c: wp.vec2) -> int:
    """1 if a, b, c turn counter-clockwise (exact comparison), else 0."""
    if (c[1] - a[1]) * (b[0] - a[0]) > (b[1] - a[1]) * (c[0] - a[0]):
        return 1
    return 0


@wp.func
def segments_intersect_2d(a: wp.vec2, b: wp.vec2, c: wp.vec2, d: wp.vec2) -> int:
    """Orientation test for segments ab and cd. No epsilon: touching or collinear cases are unreliable."""
    if ccw_2d(a, c, d) != ccw_2d(b, c, d):
        if ccw_2d(a, b, c) != ccw_2d(a, b, d):
            return 1
    return 0


@wp.kernel
def eval_link_cut_2d(
    x: wp.array(dtype=wp.vec2),
    link_indices: wp.array(dtype=int),
    tool_start: wp.vec2,
    tool_end: wp.vec2,
    keep: wp.array(dtype=int),  # Output: 0 if the link crosses the tool segment
):
    """Flag every link whose endpoint segment intersects the cut tool segment."""
    tid = wp.tid()

    i = link_indices[tid * 2 + 0]
    j = link_indices[tid * 2 + 1]

    if segments_intersect_2d(x[i], x[j], tool_start, tool_end) == 1:
        keep[tid] = 0
    else:
        keep[tid] = 1
