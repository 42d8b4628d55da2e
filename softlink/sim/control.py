# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Per-step input for 2D node-link simulations

import numpy as np


class Control:
    """
    Already-sampled host input consumed by one simulation step.
    
    The core never polls devices; the host loop fills this object from its
    own event handling once per frame.
    
    Attributes:
        pointer: Current pointer position (x, y), or None when unknown
        pointer_prev: Pointer position at the previous sample, or None
        drag: Pointer forcing active (e.g. left mouse button held)
        cut: Cut gesture active (links crossing the pointer path are removed)
        held_anchors: Node indices snapped to the pointer after the step
        impulses: Optional per-node forces, array of shape [particle_count, 2]
    """
    
    def __init__(self, pointer=None, pointer_prev=None, drag: bool = False, cut: bool = False,
                 held_anchors=(), impulses=None):
        self.pointer = pointer
        self.pointer_prev = pointer_prev
        self.drag = drag
        self.cut = cut
        self.held_anchors = tuple(held_anchors)
        self.impulses = impulses
    
    @property
    def pointer_delta(self):
        """Pointer displacement since the previous sample (zero if either is unknown)."""
        if self.pointer is None or self.pointer_prev is None:
            return np.zeros(2, dtype=np.float32)
        return np.asarray(self.pointer, dtype=np.float32) - np.asarray(self.pointer_prev, dtype=np.float32)
    
    @property
    def has_segment(self) -> bool:
        """True when both pointer samples are known, i.e. a tool segment exists."""
        return self.pointer is not None and self.pointer_prev is not None
