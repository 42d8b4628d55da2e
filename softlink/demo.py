#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
"""
Interactive pygame demo for softlink

Scenarios:
    rope   A hanging rope, node 0 pinned
    cloth  A cloth grid pinned along its top row
    net    A circular Delaunay spring network pinned at the top

Controls:
    Left mouse     Push nodes near the pointer along the mouse motion
    Right mouse/C  Cut every link the pointer path crosses
    Left Shift     Drag the anchor node (first fixed node) with the pointer
    SPACE          Pause / resume
    R              Reset
    Q / ESC        Quit

Usage:
    python -m softlink.demo --scenario rope
    python -m softlink.demo --scenario cloth --rows 25 --cols 40 --break-threshold 40
    python -m softlink.demo --scenario net --passes 8 --order colored
"""

import argparse
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np
import pygame

from pygame_renderer import Renderer

from .models import CircleModel, GridModel, RopeModel
from .sim.control import Control
from .sim.errors import ConfigurationError
from .simulation import Simulation, SimulationConfig
from .solvers.relaxation.coloring import link_coloring_2d


SCENARIOS = ("rope", "cloth", "net")


@dataclass
class DemoConfig:
    """Configuration for the interactive demo."""
    scenario: str = "rope"

    # Rope
    nodes: int = 20
    node_spacing: float = 10.0
    rest_length: float = 12.5

    # Cloth
    rows: int = 20
    cols: int = 30
    cloth_spacing: float = 12.5
    pin_stride: int = 5
    shear: bool = False

    # Net
    radius: float = 150.0
    boundary: int = 32
    rings: int = 4

    # Shared topology options
    break_threshold: Optional[float] = None

    # Physics
    sim: SimulationConfig = field(default_factory=SimulationConfig)

    # Display
    window_width: int = 800
    window_height: int = 600
    fps: int = 60
    strain_scale: float = 0.1

    # Simulation
    frames: int = 0                 # 0 = run until closed


def build_model(config: DemoConfig):
    """Create the model for the configured scenario."""
    cx = config.window_width / 2.0
    device = config.sim.device

    if config.scenario == "rope":
        return RopeModel(
            num_nodes=config.nodes,
            spacing=config.node_spacing,
            rest_length=config.rest_length,
            origin=(cx, 100.0),
            pin="first",
            break_threshold=config.break_threshold,
            device=device,
        )

    if config.scenario == "cloth":
        width = (config.cols - 1) * config.cloth_spacing
        return GridModel(
            rows=config.rows,
            cols=config.cols,
            spacing=config.cloth_spacing,
            origin=(cx - width / 2.0, 50.0),
            pin="top",
            pin_stride=config.pin_stride,
            with_shear=config.shear,
            break_threshold=config.break_threshold,
            device=device,
        )

    if config.scenario == "net":
        # Irregular mesh: the threshold is a ratio of each link's rest length
        return CircleModel(
            radius=config.radius,
            num_boundary=config.boundary,
            num_rings=config.rings,
            center=(cx, config.radius + 60.0),
            pin="top",
            break_ratio=config.break_threshold,
            device=device,
        )

    raise ConfigurationError(f"Unknown scenario {config.scenario!r}; expected one of {SCENARIOS}")


def make_control(pointer, pointer_prev, push: bool, cut: bool, anchor: Optional[int]) -> Control:
    """Translate sampled input into the Control consumed by one step."""
    held = (anchor,) if anchor is not None else ()
    return Control(
        pointer=pointer,
        pointer_prev=pointer_prev,
        drag=push,
        cut=cut,
        held_anchors=held,
    )


class SoftLinkDemo:
    """
    pygame host loop around a Simulation.

    Input is sampled once per frame into a Control; the simulation then runs
    ``config.sim.substeps`` fixed steps with it.
    """

    def __init__(self, config: Optional[DemoConfig] = None):
        self.config = config or DemoConfig()

        self.sim: Optional[Simulation] = None
        self.renderer: Optional[Renderer] = None
        self.screen = None
        self.clock = None

        self.running = True
        self.paused = False
        self.frame_count = 0

        self.pointer = None
        self.pointer_prev = None
        self.cutting = False

    def get_demo_name(self) -> str:
        return f"softlink: {self.config.scenario}"

    @property
    def anchor_index(self) -> Optional[int]:
        """First fixed node (node 0 for the rope), or None if nothing is pinned."""
        fixed = np.flatnonzero(self.sim.model.particle_fixed.numpy())
        return int(fixed[0]) if len(fixed) > 0 else None

    def setup(self) -> None:
        """Build the model, simulation and renderer."""
        cfg = self.config

        print("=" * 70)
        print(self.get_demo_name())
        print("=" * 70)
        print()

        print("Creating model...")
        model = build_model(cfg)
        print()

        self.sim = Simulation(model, cfg.sim)
        print(f"Solver: {cfg.sim.integrator}, {cfg.sim.relaxation_passes} pass(es), "
              f"{cfg.sim.order} order, dt={cfg.sim.dt}, g={cfg.sim.gravity}")
        if cfg.sim.order == "colored":
            link_coloring_2d(model.link_pairs(), model.particle_count, verbose=True)
        print()

        pygame.init()
        self.screen = pygame.display.set_mode((cfg.window_width, cfg.window_height))
        pygame.display.set_caption(self.get_demo_name())
        self.clock = pygame.time.Clock()

        self.renderer = Renderer(
            window_width=cfg.window_width,
            window_height=cfg.window_height,
        )

    def reset(self) -> None:
        """Rebuild the scenario from scratch."""
        self.sim = Simulation(build_model(self.config), self.config.sim)
        self.frame_count = 0
        self.pointer_prev = None
        print("Reset!")

    def handle_events(self) -> None:
        """Handle pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_q, pygame.K_ESCAPE):
                    self.running = False
                elif event.key == pygame.K_r:
                    self.reset()
                elif event.key == pygame.K_SPACE:
                    self.paused = not self.paused
                    print("Paused" if self.paused else "Resumed")

    def sample_control(self) -> Control:
        """Sample mouse and keyboard into a Control."""
        self.pointer_prev = self.pointer
        self.pointer = self.renderer.screen_to_world(*pygame.mouse.get_pos())

        buttons = pygame.mouse.get_pressed()
        keys = pygame.key.get_pressed()

        self.cutting = bool(buttons[2] or keys[pygame.K_c])
        anchor = self.anchor_index if keys[pygame.K_LSHIFT] else None

        return make_control(self.pointer, self.pointer_prev, bool(buttons[0]), self.cutting, anchor)

    def step(self, control: Control) -> None:
        """Run the configured number of substeps with one control."""
        for _ in range(self.config.sim.substeps):
            self.sim.step(control)
            if self.sim.last_broken > 0:
                print(f"  ⚠ {self.sim.last_broken} link(s) broke ({self.sim.link_count} left)")
            if self.sim.last_cut > 0:
                print(f"  ✓ Cut {self.sim.last_cut} link(s) ({self.sim.link_count} left)")
        self.frame_count += 1

    def get_info_lines(self) -> list:
        """Info text for the HUD."""
        sim = self.sim
        fps = self.clock.get_fps() if self.clock is not None else 0.0
        return [
            (self.get_demo_name(), Renderer.BLACK),
            (f"Nodes: {sim.node_count}  Links: {sim.link_count}", Renderer.BLACK),
            (f"Broken: {sim.total_broken}  Cut: {sim.total_cut}", Renderer.GREY),
            (f"Step: {sim.step_count}  FPS: {fps:.0f}", Renderer.GREY),
            ("PAUSED" if self.paused else "", Renderer.FIXED_FILL),
        ]

    def render(self) -> None:
        """Render the current frame."""
        cfg = self.config
        snap = self.sim.snapshot()

        canvas = self.renderer.create_canvas()
        self.renderer.draw_grid(canvas)
        self.renderer.draw_links(canvas, snap.links, snap.positions, snap.strains, cfg.strain_scale)
        self.renderer.draw_nodes(canvas, snap.positions, snap.fixed)
        self.renderer.draw_pointer(canvas, self.pointer, cfg.sim.capture_radius,
                                   active=pygame.mouse.get_pressed()[0])
        if self.cutting:
            self.renderer.draw_cut_segment(canvas, self.pointer_prev, self.pointer)
        self.renderer.draw_strain_legend(canvas, cfg.strain_scale)
        self.renderer.draw_info_text(canvas, self.get_info_lines())

        self.screen.blit(canvas, canvas.get_rect())
        pygame.display.flip()

    def get_summary(self) -> Dict[str, Any]:
        """Summary of the run."""
        summary = self.sim.summary()
        summary["frames"] = self.frame_count
        return summary

    def run(self) -> Dict[str, Any]:
        """
        Run the demo loop.

        Returns:
            Summary dictionary with simulation results
        """
        self.setup()

        print("=" * 70)
        print("SIMULATION STARTED")
        print("=" * 70)
        print("Left mouse: push | Right mouse / C: cut | Left Shift: drag anchor")
        print("Press Q/ESC to quit, R to reset, SPACE to pause")
        print()

        start_time = time.time()

        while self.running:
            self.handle_events()

            if self.paused:
                self.render()
                self.clock.tick(self.config.fps)
                continue

            self.step(self.sample_control())
            self.render()
            self.clock.tick(self.config.fps)

            if self.frame_count % 300 == 0:
                fps = self.frame_count / max(time.time() - start_time, 0.01)
                print(f"frame={self.frame_count} | links={self.sim.link_count} | fps={fps:.1f}")

            if self.config.frames and self.frame_count >= self.config.frames:
                break

        summary = self.get_summary()

        print()
        print("=" * 70)
        print("SIMULATION COMPLETE")
        print("=" * 70)
        print(f"  Frames: {summary['frames']}")
        print(f"  Links: {summary['links']} (broken {summary['broken']}, cut {summary['cut']})")
        print()

        pygame.quit()

        return summary

    @classmethod
    def add_common_args(cls, parser: argparse.ArgumentParser) -> None:
        """Add command-line arguments to parser."""
        defaults = SimulationConfig()
        parser.add_argument('--scenario', '-s', type=str, default='rope', choices=SCENARIOS,
                            help='Scenario to simulate (default: rope)')
        parser.add_argument('--nodes', type=int, default=20,
                            help='Rope node count (default: 20)')
        parser.add_argument('--rows', type=int, default=20,
                            help='Cloth rows (default: 20)')
        parser.add_argument('--cols', type=int, default=30,
                            help='Cloth columns (default: 30)')
        parser.add_argument('--pin-stride', type=int, default=5,
                            help='Pin every n-th node of the cloth top row (default: 5)')
        parser.add_argument('--shear', action='store_true',
                            help='Add diagonal cloth links')
        parser.add_argument('--break-threshold', type=float, default=None,
                            help='Link breakage length (rope/cloth) or ratio of rest length (net)')
        parser.add_argument('--dt', type=float, default=defaults.dt,
                            help=f'Time step (default: {defaults.dt})')
        parser.add_argument('--substeps', type=int, default=defaults.substeps,
                            help=f'Steps per frame (default: {defaults.substeps})')
        parser.add_argument('--gravity', type=float, default=defaults.gravity,
                            help=f'Gravity, screen space y down (default: {defaults.gravity})')
        parser.add_argument('--drag', type=float, default=defaults.drag,
                            help=f'Drag coefficient (default: {defaults.drag})')
        parser.add_argument('--rigidity', type=float, default=defaults.rigidity,
                            help=f'Relaxation rigidity (default: {defaults.rigidity})')
        parser.add_argument('--passes', type=int, default=defaults.relaxation_passes,
                            help=f'Relaxation passes per step (default: {defaults.relaxation_passes})')
        parser.add_argument('--compression-factor', type=float, default=defaults.compression_factor,
                            help=f'Correction scale for compressed links (default: {defaults.compression_factor})')
        parser.add_argument('--integrator', type=str, default=defaults.integrator, choices=['euler', 'verlet'],
                            help=f'Integration rule (default: {defaults.integrator})')
        parser.add_argument('--order', type=str, default=defaults.order, choices=['sequential', 'colored'],
                            help=f'Relaxation order (default: {defaults.order})')
        parser.add_argument('--capture-radius', type=float, default=defaults.capture_radius,
                            help=f'Pointer capture radius (default: {defaults.capture_radius})')
        parser.add_argument('--device', type=str, default=defaults.device,
                            choices=['cuda', 'cpu'], help=f'Device (default: {defaults.device})')
        parser.add_argument('--window-width', type=int, default=800,
                            help='Window width (default: 800)')
        parser.add_argument('--window-height', type=int, default=600,
                            help='Window height (default: 600)')
        parser.add_argument('--frames', type=int, default=0,
                            help='Stop after this many frames, 0 = run until closed (default: 0)')

    @classmethod
    def config_from_args(cls, args) -> DemoConfig:
        """Create DemoConfig from parsed arguments."""
        sim = SimulationConfig(
            dt=args.dt,
            substeps=args.substeps,
            gravity=args.gravity,
            drag=args.drag,
            capture_radius=args.capture_radius,
            rigidity=args.rigidity,
            relaxation_passes=args.passes,
            compression_factor=args.compression_factor,
            order=args.order,
            integrator=args.integrator,
            device=args.device,
        )
        return DemoConfig(
            scenario=args.scenario,
            nodes=args.nodes,
            rows=args.rows,
            cols=args.cols,
            pin_stride=args.pin_stride,
            shear=args.shear,
            break_threshold=args.break_threshold,
            sim=sim,
            window_width=args.window_width,
            window_height=args.window_height,
            frames=args.frames,
        )


def main(argv=None):
    parser = argparse.ArgumentParser(description='softlink interactive demo')
    SoftLinkDemo.add_common_args(parser)
    args = parser.parse_args(argv)

    demo = SoftLinkDemo(SoftLinkDemo.config_from_args(args))
    demo.run()


if __name__ == "__main__":
    main()
