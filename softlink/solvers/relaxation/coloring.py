# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Link coloring for parallel relaxation
# Groups links that share no node so each group can be relaxed concurrently

import numpy as np


def link_coloring_2d(link_pairs: np.ndarray, num_nodes: int, verbose: bool = False) -> tuple:
    """
    Greedy edge coloring of the node-link graph.

    Links are visited in container order and each takes the lowest color not
    already used by a link touching either endpoint, so two links of the same
    color never share a node. Relaxing one color in parallel is then free of
    write races on node positions.

    A simple greedy pass needs at most 2*max_degree - 1 colors; cloth grids
    typically end up with 4-8.

    Args:
        link_pairs: Link endpoint indices, shape [link_count, 2]
        num_nodes: Total number of nodes
        verbose: Print the color distribution

    Returns:
        coloring: Array of color assignments per link
        color_groups: Dictionary mapping color -> list of link indices (in container order)
    """
    link_pairs = np.asarray(link_pairs).reshape(-1, 2)
    num_links = len(link_pairs)
    coloring = -1 * np.ones(num_links, dtype=np.int32)
    color_groups = {}

    # Colors already taken at each node
    node_colors = [set() for _ in range(num_nodes)]

    for s in range(num_links):
        a, b = int(link_pairs[s, 0]), int(link_pairs[s, 1])
        used_colors = node_colors[a] | node_colors[b]

        color = 0
        while color in used_colors:
            color += 1

        coloring[s] = color
        color_groups.setdefault(color, []).append(s)
        node_colors[a].add(color)
        node_colors[b].add(color)

    if verbose and num_links > 0:
        num_colors = int(coloring.max()) + 1
        color_distribution = np.bincount(coloring)
        print(f"  Link coloring: {num_colors} colors, distribution: {color_distribution}")

    return coloring, color_groups


def flatten_color_groups(color_groups: dict) -> tuple:
    """
    Pack color groups into one index array plus (start, count) ranges.

    Returns:
        color_links: Link indices grouped by color, shape [link_count]
        color_ranges: List of (start, count) per color, in color order
    """
    color_links = []
    color_ranges = []

    for color in sorted(color_groups.keys()):
        group = color_groups[color]
        color_ranges.append((len(color_links), len(group)))
        color_links.extend(group)

    return np.array(color_links, dtype=np.int32), color_ranges
