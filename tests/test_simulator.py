import numpy as np
import pytest

from config import InitialState, PhysicalParameters, SimulationConfig
from simulator import (
    NumericalInstability,
    StateSample,
    integrate,
    max_deviation,
    reference_solution,
)

DEFAULT_PARAMS = PhysicalParameters()
DEFAULT_INIT = InitialState()
SHORT = SimulationConfig(dt=0.01, t_max=2.0)
# мягкая пружина с большим начальным смещением уходит в бесконечность
BLOWUP_PARAMS = PhysicalParameters(delta=0.0, alpha=1.0, beta=-1.0, A=0.0, phi=1.0)
BLOWUP_INIT = InitialState(x0=10.0, v0=0.0)


def test_sample_count():
    traj = integrate(DEFAULT_PARAMS, DEFAULT_INIT)
    assert len(traj) == 2001
    assert SHORT.num_samples == len(integrate(DEFAULT_PARAMS, DEFAULT_INIT, config=SHORT)) == 201


def test_initial_sample_is_perturbed_state():
    traj = integrate(DEFAULT_PARAMS, DEFAULT_INIT, epsilon=0.05, config=SHORT)
    assert traj[0] == StateSample(t=0.0, x=1.0 + 0.05, v=2.0 + 0.05)
    assert traj.epsilon == 0.05


def test_time_grid():
    traj = integrate(DEFAULT_PARAMS, DEFAULT_INIT)
    expected = np.arange(2001) * 0.01
    np.testing.assert_allclose(traj.t, expected, rtol=0, atol=1e-9)
    assert traj[-1].t == pytest.approx(20.0, abs=1e-9)
    assert np.all(np.diff(traj.t) > 0)


def test_deterministic():
    first = integrate(DEFAULT_PARAMS, DEFAULT_INIT, epsilon=0.01)
    second = integrate(DEFAULT_PARAMS, DEFAULT_INIT, epsilon=0.01)
    np.testing.assert_array_equal(first.x, second.x)
    np.testing.assert_array_equal(first.v, second.v)


def test_linear_free_oscillation_matches_closed_form():
    delta, alpha = 0.1, 1.0
    params = PhysicalParameters(delta=delta, alpha=alpha, beta=0.0, A=0.0, phi=1.0)
    traj = integrate(params, InitialState(x0=1.0, v0=0.0))

    gamma = delta / 2
    omega = np.sqrt(alpha - gamma**2)
    t = traj.t
    c1, c2 = 1.0, gamma / omega
    x_exact = np.exp(-gamma * t) * (c1 * np.cos(omega * t) + c2 * np.sin(omega * t))
    v_exact = np.exp(-gamma * t) * (
        (c2 * omega - gamma * c1) * np.cos(omega * t) - (c1 * omega + gamma * c2) * np.sin(omega * t)
    )

    assert np.max(np.abs(traj.x - x_exact)) <= 1e-3
    assert np.max(np.abs(traj.v - v_exact)) <= 1e-3


def test_single_step_matches_rk4_formula():
    params = PhysicalParameters(delta=0.2, alpha=1.5, beta=0.7, A=0.9, phi=1.3)
    config = SimulationConfig(dt=0.1, t_max=0.1)
    traj = integrate(params, InitialState(x0=0.4, v0=-0.3), config=config)
    assert len(traj) == 2

    def f(t, x, v):
        return v, -0.2 * v - 1.5 * x - 0.7 * x**3 + 0.9 * np.cos(1.3 * t)

    h, x, v = 0.1, 0.4, -0.3
    k1 = f(0.0, x, v)
    k2 = f(h / 2, x + h / 2 * k1[0], v + h / 2 * k1[1])
    k3 = f(h / 2, x + h / 2 * k2[0], v + h / 2 * k2[1])
    k4 = f(h, x + h * k3[0], v + h * k3[1])
    x1 = x + h / 6 * (k1[0] + 2 * k2[0] + 2 * k3[0] + k4[0])
    v1 = v + h / 6 * (k1[1] + 2 * k2[1] + 2 * k3[1] + k4[1])

    assert traj[1].x == pytest.approx(x1, abs=1e-12)
    assert traj[1].v == pytest.approx(v1, abs=1e-12)


def test_agrees_with_reference_solution():
    config = SimulationConfig(dt=0.01, t_max=5.0)
    traj = integrate(DEFAULT_PARAMS, DEFAULT_INIT, config=config)
    reference = reference_solution(DEFAULT_PARAMS, DEFAULT_INIT, config=config)
    np.testing.assert_array_equal(reference.t, traj.t)
    assert max_deviation(traj, reference) < 1e-6


def test_max_deviation_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        max_deviation(
            integrate(DEFAULT_PARAMS, DEFAULT_INIT, config=SHORT),
            integrate(DEFAULT_PARAMS, DEFAULT_INIT, config=SimulationConfig(dt=0.01, t_max=1.0)),
        )


def test_trajectory_is_read_only():
    traj = integrate(DEFAULT_PARAMS, DEFAULT_INIT, config=SHORT)
    with pytest.raises(ValueError):
        traj.x[0] = 42.0


def test_to_frame():
    traj = integrate(DEFAULT_PARAMS, DEFAULT_INIT, config=SHORT)
    frame = traj.to_frame()
    assert list(frame.columns) == ["t", "x", "v"]
    assert len(frame) == 201
    assert frame["x"].iloc[0] == 1.0


def test_blowup_still_returns_full_grid():
    traj = integrate(BLOWUP_PARAMS, BLOWUP_INIT, on_instability="ignore")
    assert len(traj) == 2001
    assert not traj.is_finite
    idx = traj.first_nonfinite_index
    assert 0 < idx < 2001
    assert np.all(np.isfinite(traj.x[:idx]))


def test_instability_warns_by_default():
    with pytest.warns(NumericalInstability):
        traj = integrate(BLOWUP_PARAMS, BLOWUP_INIT)
    assert len(traj) == 2001


def test_instability_raise_mode():
    with pytest.raises(NumericalInstability) as excinfo:
        integrate(BLOWUP_PARAMS, BLOWUP_INIT, epsilon=0.1, on_instability="raise")
    assert excinfo.value.epsilon == 0.1
    assert excinfo.value.index > 0


def test_finite_run_is_not_flagged(recwarn):
    traj = integrate(DEFAULT_PARAMS, DEFAULT_INIT, on_instability="raise")
    assert traj.is_finite
    assert traj.first_nonfinite_index is None
    assert not [w for w in recwarn if issubclass(w.category, NumericalInstability)]


def test_unknown_instability_mode():
    with pytest.raises(ValueError):
        integrate(DEFAULT_PARAMS, DEFAULT_INIT, config=SHORT, on_instability="explode")
