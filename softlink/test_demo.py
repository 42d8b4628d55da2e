# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Tests for the demo's headless pieces (scenario building, input, CLI)

import argparse

import numpy as np
import pytest

from softlink.demo import DemoConfig, SoftLinkDemo, build_model, make_control
from softlink.sim import ConfigurationError
from softlink.simulation import Simulation


def parse(argv):
    parser = argparse.ArgumentParser()
    SoftLinkDemo.add_common_args(parser)
    return SoftLinkDemo.config_from_args(parser.parse_args(argv))


def test_default_config_matches_rope_demo():
    config = parse([])

    assert config.scenario == "rope"
    assert config.sim.dt == 0.05
    assert config.sim.gravity == 18.0
    assert config.sim.substeps == 2
    assert config.sim.relaxation_passes == 1


def test_cli_options_reach_simulation_config():
    config = parse(["--scenario", "cloth", "--passes", "6", "--order", "colored",
                    "--integrator", "verlet", "--break-threshold", "30"])

    assert config.scenario == "cloth"
    assert config.break_threshold == 30.0
    assert config.sim.relaxation_passes == 6
    assert config.sim.order == "colored"
    assert config.sim.integrator == "verlet"


def test_invalid_cli_value_rejected():
    with pytest.raises(ConfigurationError):
        parse(["--dt", "0"])


def test_build_rope_scenario():
    model = build_model(DemoConfig(scenario="rope"))
    assert model.particle_count == 20
    assert model.link_count == 19
    assert model.particle_fixed.numpy()[0] == 1


def test_build_cloth_scenario():
    model = build_model(DemoConfig(scenario="cloth", rows=5, cols=6, pin_stride=5))
    assert model.particle_count == 30
    assert list(np.flatnonzero(model.particle_fixed.numpy())) == [0, 5]


def test_build_net_scenario():
    model = build_model(DemoConfig(scenario="net", boundary=12, rings=1, break_threshold=1.5))
    assert model.particle_count > 13
    assert model.has_break_thresholds


def test_unknown_scenario():
    with pytest.raises(ConfigurationError):
        build_model(DemoConfig(scenario="jelly"))


def test_make_control():
    control = make_control((5.0, 5.0), (5.0, -5.0), push=False, cut=True, anchor=0)

    assert control.cut and not control.drag
    assert control.held_anchors == (0,)
    assert control.has_segment
    assert np.allclose(control.pointer_delta, [0.0, 10.0])

    idle = make_control((1.0, 1.0), None, push=True, cut=False, anchor=None)
    assert idle.held_anchors == ()
    assert not idle.has_segment
    assert np.allclose(idle.pointer_delta, [0.0, 0.0])


def test_demo_step_runs_substeps():
    demo = SoftLinkDemo(DemoConfig(scenario="rope"))
    demo.sim = Simulation(build_model(demo.config), demo.config.sim)

    demo.step(make_control(None, None, False, False, None))

    assert demo.sim.step_count == demo.config.sim.substeps
    assert demo.frame_count == 1
    assert demo.anchor_index == 0
