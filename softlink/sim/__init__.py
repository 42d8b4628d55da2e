# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0

from .builder import ModelBuilder
from .control import Control
from .errors import ConfigurationError, InvariantError, SimulationError
from .model import Model, NO_BREAK_THRESHOLD
from .state import Node, State

__all__ = [
    "ConfigurationError",
    "Control",
    "InvariantError",
    "Model",
    "ModelBuilder",
    "NO_BREAK_THRESHOLD",
    "Node",
    "SimulationError",
    "State",
]
