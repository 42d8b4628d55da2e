# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0

from .rope import RopeModel
from .grid import GridModel
from .circle import CircleModel

__all__ = [
    "RopeModel",
    "GridModel",
    "CircleModel",
]
