# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Per-node forcing and integration kernels for the relaxation solver

import warp as wp


@wp.kernel
def apply_gravity_2d(
    f: wp.array(dtype=wp.vec2),
    mass: wp.array(dtype=float),
    fixed: wp.array(dtype=int),
    g: float,
):
    """Add (0, g * m) to every free node. Screen space: positive g points down."""
    tid = wp.tid()

    if fixed[tid] != 0:
        return

    f[tid] = f[tid] + wp.vec2(0.0, g * mass[tid])


@wp.kernel
def apply_drag_2d(
    f: wp.array(dtype=wp.vec2),
    v: wp.array(dtype=wp.vec2),
    fixed: wp.array(dtype=int),
    k: float,
):
    """Velocity-proportional drag: f -= v * k on every free node."""
    tid = wp.tid()

    if fixed[tid] != 0:
        return

    f[tid] = f[tid] - v[tid] * k


@wp.kernel
def apply_impulses_2d(
    f: wp.array(dtype=wp.vec2),
    impulses: wp.array(dtype=wp.vec2),
):
    """Add caller-supplied per-node forces. Not gated by the fixed flag."""
    tid = wp.tid()
    f[tid] = f[tid] + impulses[tid]


@wp.kernel
def apply_pointer_force_2d(
    x: wp.array(dtype=wp.vec2),
    f: wp.array(dtype=wp.vec2),
    fixed: wp.array(dtype=int),
    pointer: wp.vec2,
    delta: wp.vec2,
    radius: float,
    strength: float,
):
    """
    Interactive forcing: nodes strictly within ``radius`` of the pointer
    receive the pointer displacement scaled by ``strength``. Fixed nodes are skipped.
    """
    tid = wp.tid()

    if fixed[tid] != 0:
        return

    if wp.length(x[tid] - pointer) < radius:
        f[tid] = f[tid] + delta * strength


@wp.kernel
def integrate_euler_2d(
    x: wp.array(dtype=wp.vec2),
    x_prev: wp.array(dtype=wp.vec2),
    v: wp.array(dtype=wp.vec2),
    f: wp.array(dtype=wp.vec2),
    inv_mass: wp.array(dtype=float),
    fixed: wp.array(dtype=int),
    dt: float,
):
    """
    Semi-implicit Euler with position memory.

        x_prev = x
        v += f/m * dt
        x += v * dt

    The force is left in place; differentiate_2d clears it after relaxation.
    """
    tid = wp.tid()

    if fixed[tid] != 0:
        return

    x0 = x[tid]
    v1 = v[tid] + f[tid] * inv_mass[tid] * dt

    x_prev[tid] = x0
    v[tid] = v1
    x[tid] = x0 + v1 * dt


@wp.kernel
def integrate_verlet_2d(
    x: wp.array(dtype=wp.vec2),
    x_prev: wp.array(dtype=wp.vec2),
    v: wp.array(dtype=wp.vec2),
    f: wp.array(dtype=wp.vec2),
    inv_mass: wp.array(dtype=float),
    fixed: wp.array(dtype=int),
    dt: float,
):
    """
    Velocity-Verlet style update driven by the last constrained displacement.

        v_last = (x - x_prev) / dt
        a_last = (v_last - v) / dt
        a_new  = f / m
        v     += 0.5 * (a_last + a_new) * dt
        x_prev = x
        x     += v * dt
        f      = 0
    """
    tid = wp.tid()

    if fixed[tid] != 0:
        return

    x0 = x[tid]
    v0 = v[tid]

    last_vel = (x0 - x_prev[tid]) / dt
    last_accel = (last_vel - v0) / dt
    new_accel = f[tid] * inv_mass[tid]

    v1 = v0 + (last_accel + new_accel) * (0.5 * dt)

    x_prev[tid] = x0
    v[tid] = v1
    x[tid] = x0 + v1 * dt
    f[tid] = wp.vec2(0.0, 0.0)


@wp.kernel
def differentiate_2d(
    x: wp.array(dtype=wp.vec2),
    x_prev: wp.array(dtype=wp.vec2),
    v: wp.array(dtype=wp.vec2),
    f: wp.array(dtype=wp.vec2),
    fixed: wp.array(dtype=int),
    dt: float,
):
    """Velocity from the constrained displacement, v = (x - x_prev) / dt; clears the force."""
    tid = wp.tid()

    if fixed[tid] != 0:
        return

    v[tid] = (x[tid] - x_prev[tid]) / dt
    f[tid] = wp.vec2(0.0, 0.0)


@wp.kernel
def set_particle_position_2d(
    x: wp.array(dtype=wp.vec2),
    index: int,
    pos: wp.vec2,
):
    """Direct position override for a single node (anchor dragging). Launch with dim=1."""
    x[index] = pos
