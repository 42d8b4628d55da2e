# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Error types raised by the simulation core


class SimulationError(Exception):
    """Base class for all errors raised by softlink."""


class ConfigurationError(SimulationError, ValueError):
    """
    Invalid construction-time configuration.

    Raised for non-positive or non-finite masses, empty topologies, links
    referencing out-of-range or identical nodes, and invalid solver settings.
    A model that raised this never enters the step loop.
    """


class InvariantError(SimulationError, RuntimeError):
    """
    Step-time reference to a node or link that does not exist.

    This is a programming defect, not a recoverable condition. Skipping the
    reference instead would desynchronize rendering from simulated topology.
    """
