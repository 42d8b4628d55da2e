# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Base solver class for 2D node-link simulations

import numpy as np
import warp as wp

from .relaxation.kernels_links import eval_link_metrics_2d


class SolverBase:
    """
    Generic base class for 2D solvers.

    Holds the model, owns the per-link scratch buffers and defines the
    interface that concrete solvers must implement.

    Features:
        - Link metrics (length, strain, over-threshold flags) shared by
          breakage and rendering
        - Scratch buffers reallocated whenever the link set changes
    """

    def __init__(self, model):
        """
        Initialize the solver with a model.

        Args:
            model: The 2D Model object containing system description
        """
        self.model = model

        self._link_keep = None
        self._scratch_version = -1

    @property
    def device(self):
        """
        Get the device used by the solver.

        Returns:
            The device used by the solver
        """
        return self.model.device

    def step(self, state, control=None, dt: float = None):
        """
        Simulate the model for a given time step, in place.

        Must be implemented by concrete solver subclasses.

        Args:
            state: The state to advance
            control: Per-step input (may be None)
            dt: The time step
        """
        raise NotImplementedError("Concrete solvers must implement step()")

    def _link_scratch(self):
        """Per-link int buffer, reallocated after topology changes."""
        model = self.model
        if self._scratch_version != model.link_version:
            self._link_keep = wp.ones(max(model.link_count, 1), dtype=int, device=model.device)
            self._scratch_version = model.link_version
        return self._link_keep

    def eval_link_metrics(self, state) -> np.ndarray:
        """
        Update ``model.link_length`` / ``model.link_strain`` from the current positions.

        Returns:
            Boolean host array, False for links stretched past their breakage threshold
        """
        model = self.model
        if model.link_count == 0:
            return np.zeros(0, dtype=bool)

        keep = self._link_scratch()
        wp.launch(
            kernel=eval_link_metrics_2d,
            dim=model.link_count,
            inputs=[
                state.particle_q,
                model.link_indices,
                model.link_rest_length,
                model.link_break_threshold,
            ],
            outputs=[model.link_length, model.link_strain, keep],
            device=model.device,
        )
        return keep.numpy()[:model.link_count] != 0
