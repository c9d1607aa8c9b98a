# simulator.py
"""
Интегрирование уравнения Дуффинга методом Рунге-Кутты 4-го порядка.

    x'' + delta*x' + alpha*x + beta*x^3 = A*cos(phi*t)

Система первого порядка: dx/dt = v, dv/dt = -delta*v - alpha*x - beta*x^3 + A*cos(phi*t).
Шаг фиксированный, число точек всегда steps + 1, даже если решение
уходит в inf/NaN.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterator, NamedTuple
import warnings

import numpy as np
import pandas as pd
from numba import njit
from scipy.integrate import solve_ivp

from config import DEFAULT_CONFIG, InitialState, PhysicalParameters, SimulationConfig

logger = logging.getLogger(__name__)

INSTABILITY_MODES = ("ignore", "warn", "raise")


class NumericalInstability(RuntimeWarning):
    """В траектории появились нечисловые значения (inf/NaN)."""

    def __init__(self, message: str, epsilon: float = 0.0, index: int = -1):
        super().__init__(message)
        self.epsilon = epsilon
        self.index = index


class StateSample(NamedTuple):
    t: float
    x: float
    v: float


@dataclass(frozen=True, eq=False)
class Trajectory:
    """Траектория одного запуска: массивы t, x, v длины steps + 1."""

    t: np.ndarray
    x: np.ndarray
    v: np.ndarray
    epsilon: float = 0.0

    def __post_init__(self) -> None:
        if not (self.t.shape == self.x.shape == self.v.shape):
            raise ValueError(f"Несовпадающие размеры массивов: {self.t.shape}, {self.x.shape}, {self.v.shape}")
        for arr in (self.t, self.x, self.v):
            arr.flags.writeable = False

    def __len__(self) -> int:
        return self.t.shape[0]

    def __getitem__(self, index: int) -> StateSample:
        return StateSample(float(self.t[index]), float(self.x[index]), float(self.v[index]))

    def __iter__(self) -> Iterator[StateSample]:
        for i in range(len(self)):
            yield self[i]

    @property
    def first_nonfinite_index(self) -> int | None:
        bad = ~(np.isfinite(self.x) & np.isfinite(self.v))
        if not bad.any():
            return None
        return int(np.argmax(bad))

    @property
    def is_finite(self) -> bool:
        return self.first_nonfinite_index is None

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"t": self.t, "x": self.x, "v": self.v})


@njit(cache=True, nogil=True)
def _rk4_kernel(delta, alpha, beta, A, phi, x0, v0, dt, steps):
    t_out = np.empty(steps + 1)
    x_out = np.empty(steps + 1)
    v_out = np.empty(steps + 1)

    x = x0
    v = v0
    for i in range(steps + 1):
        t = i * dt
        t_out[i] = t
        x_out[i] = x
        v_out[i] = v

        if i < steps:
            t_half = t + 0.5 * dt
            t_next = t + dt

            k1x = v
            k1v = -delta * v - alpha * x - beta * x**3 + A * np.cos(phi * t)

            x2 = x + 0.5 * dt * k1x
            v2 = v + 0.5 * dt * k1v
            k2x = v2
            k2v = -delta * v2 - alpha * x2 - beta * x2**3 + A * np.cos(phi * t_half)

            x3 = x + 0.5 * dt * k2x
            v3 = v + 0.5 * dt * k2v
            k3x = v3
            k3v = -delta * v3 - alpha * x3 - beta * x3**3 + A * np.cos(phi * t_half)

            x4 = x + dt * k3x
            v4 = v + dt * k3v
            k4x = v4
            k4v = -delta * v4 - alpha * x4 - beta * x4**3 + A * np.cos(phi * t_next)

            x = x + (dt / 6.0) * (k1x + 2.0 * k2x + 2.0 * k3x + k4x)
            v = v + (dt / 6.0) * (k1v + 2.0 * k2v + 2.0 * k3v + k4v)

    return t_out, x_out, v_out


def check_instability_mode(on_instability: str) -> None:
    if on_instability not in INSTABILITY_MODES:
        raise ValueError(f"on_instability должен быть одним из {INSTABILITY_MODES}, получено {on_instability!r}")


def report_instability(trajectory: Trajectory, on_instability: str) -> None:
    index = trajectory.first_nonfinite_index
    if index is None or on_instability == "ignore":
        return

    message = (
        f"Траектория (ε={trajectory.epsilon}) разошлась: нечисловое значение "
        f"в точке {index} (t={trajectory.t[index]:.4f})"
    )
    if on_instability == "raise":
        raise NumericalInstability(message, epsilon=trajectory.epsilon, index=index)
    logger.warning(message)
    warnings.warn(NumericalInstability(message, epsilon=trajectory.epsilon, index=index), stacklevel=3)


def integrate(
    params: PhysicalParameters,
    init: InitialState,
    epsilon: float = 0.0,
    config: SimulationConfig = DEFAULT_CONFIG,
    on_instability: str = "warn",
) -> Trajectory:
    """
    Траектория осциллятора Дуффинга с начальным условием (x0 + ε, v0 + ε).

    Отсчёт i записывается до шага i -> i+1, время t_i = i*dt.
    on_instability: реакция на inf/NaN в решении ("ignore", "warn" или "raise").
    """
    check_instability_mode(on_instability)
    x0, v0 = init.perturbed(epsilon)
    steps = config.steps

    t, x, v = _rk4_kernel(
        float(params.delta),
        float(params.alpha),
        float(params.beta),
        float(params.A),
        float(params.phi),
        float(x0),
        float(v0),
        float(config.dt),
        int(steps),
    )
    logger.debug("RK4: ε=%s, dt=%s, steps=%d, x(T)=%.6g", epsilon, config.dt, steps, x[-1])

    trajectory = Trajectory(t=t, x=x, v=v, epsilon=float(epsilon))
    report_instability(trajectory, on_instability)
    return trajectory


def _dynamics_factory(delta: float, alpha: float, beta: float, A: float, phi: float):
    def dynamics(t, y):
        x, v = y
        return (v, -delta * v - alpha * x - beta * x**3 + A * np.cos(phi * t))

    return dynamics


def reference_solution(
    params: PhysicalParameters,
    init: InitialState,
    epsilon: float = 0.0,
    config: SimulationConfig = DEFAULT_CONFIG,
    method: str = "DOP853",
    rtol: float = 1e-10,
    atol: float = 1e-12,
) -> Trajectory:
    """Эталонное решение solve_ivp на той же сетке, для проверки точности RK4."""
    t_eval = np.arange(config.num_samples) * config.dt
    dynamics = _dynamics_factory(params.delta, params.alpha, params.beta, params.A, params.phi)

    y0 = list(init.perturbed(epsilon))
    sol = solve_ivp(
        dynamics,
        (0.0, t_eval[-1]),
        y0,
        t_eval=t_eval,
        method=method,
        rtol=rtol,
        atol=atol,
    )
    if not sol.success:
        raise RuntimeError(sol.message)
    return Trajectory(t=t_eval, x=sol.y[0].copy(), v=sol.y[1].copy(), epsilon=float(epsilon))


def max_deviation(trajectory: Trajectory, reference: Trajectory) -> float:
    """Максимальное отклонение по x и v между двумя траекториями на общей сетке."""
    if len(trajectory) != len(reference):
        raise ValueError(f"Разное число точек: {len(trajectory)} и {len(reference)}")
    return float(max(np.max(np.abs(trajectory.x - reference.x)), np.max(np.abs(trajectory.v - reference.v))))
