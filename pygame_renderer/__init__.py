# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
"""
Pygame Renderer for 2D node-link simulations.

Used by softlink/demo.py. Main classes:
- Renderer: pygame drawing of links (colored by strain), nodes, cut segment and HUD
"""

from .renderer import Renderer

__all__ = ['Renderer']
