import math

import pytest

from config import (
    DEFAULT_CONFIG,
    MAX_STEPS,
    InitialState,
    InvalidConfiguration,
    PhysicalParameters,
    SimulationConfig,
)


def test_default_config_steps():
    assert DEFAULT_CONFIG.dt == 0.01
    assert DEFAULT_CONFIG.t_max == 20.0
    assert DEFAULT_CONFIG.steps == 2000
    assert DEFAULT_CONFIG.num_samples == 2001


def test_steps_absorb_representation_error():
    # 0.3 / 0.1 = 2.9999999999999996
    assert SimulationConfig(dt=0.1, t_max=0.3).steps == 3
    assert SimulationConfig(dt=0.3, t_max=1.0).steps == 3


@pytest.mark.parametrize(
    "dt, t_max",
    [(0.0, 20.0), (-0.01, 20.0), (0.01, 0.0), (0.01, -1.0), (0.5, 0.1), (math.nan, 20.0), (0.01, math.inf)],
)
def test_invalid_configuration(dt, t_max):
    with pytest.raises(InvalidConfiguration):
        SimulationConfig(dt=dt, t_max=t_max)


def test_invalid_configuration_is_value_error():
    assert issubclass(InvalidConfiguration, ValueError)


def test_defaults_match_reference_parameter_set():
    params = PhysicalParameters()
    init = InitialState()
    assert params.as_dict() == {"delta": 0.1, "alpha": 1.0, "beta": 0.3, "A": 0.5, "phi": 1.0}
    assert (init.x0, init.v0) == (1.0, 2.0)


def test_from_mapping_roundtrip_and_defaults():
    params = PhysicalParameters(delta=0.2, alpha=-1.0, beta=1.0, A=0.3, phi=1.2)
    assert PhysicalParameters.from_mapping(params.as_dict()) == params
    assert PhysicalParameters.from_mapping({"beta": "0"}).beta == 0.0
    assert InitialState.from_mapping({"x0": 0.5}) == InitialState(x0=0.5, v0=2.0)


def test_perturbed_shifts_both_coordinates():
    assert InitialState(x0=1.0, v0=2.0).perturbed(0.25) == (1.25, 2.25)


def test_parameters_are_immutable():
    params = PhysicalParameters()
    with pytest.raises(AttributeError):
        params.beta = 1.0


@pytest.mark.parametrize("dt, t_max", [(1e-320, 20.0), (1e-9, 1000.0)])
def test_too_many_steps_rejected(dt, t_max):
    with pytest.raises(InvalidConfiguration, match="Слишком много шагов"):
        SimulationConfig(dt=dt, t_max=t_max)


def test_step_limit_is_inclusive():
    config = SimulationConfig(dt=1.0, t_max=float(MAX_STEPS))
    assert config.steps == MAX_STEPS
