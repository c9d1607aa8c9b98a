"""Параметры модели, начальные условия и настройки численной схемы."""

from __future__ import annotations

from dataclasses import asdict, dataclass
import logging
import math
from typing import Mapping

from constants import (
    A_DEFAULT,
    ALPHA_DEFAULT,
    BETA_DEFAULT,
    DELTA_DEFAULT,
    DT,
    LOG_DIR,
    LOG_FILE,
    PHI_DEFAULT,
    T_MAX,
    V0_DEFAULT,
    X0_DEFAULT,
)

# запас на ошибку представления, например 0.3 / 0.1 = 2.9999999999999996
_STEPS_GUARD = 1e-9
# массивы t, x, v по 8 байт на точку: 10^8 шагов ~ 2.4 ГБ
MAX_STEPS = 100_000_000


class InvalidConfiguration(ValueError):
    """Некорректные настройки схемы (шаг или горизонт)."""


@dataclass(frozen=True)
class PhysicalParameters:
    delta: float = DELTA_DEFAULT  # затухание
    alpha: float = ALPHA_DEFAULT  # линейная жёсткость
    beta: float = BETA_DEFAULT    # нелинейная жёсткость
    A: float = A_DEFAULT          # амплитуда силы
    phi: float = PHI_DEFAULT      # частота силы

    def as_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, float]) -> "PhysicalParameters":
        return cls(
            delta=float(data.get("delta", DELTA_DEFAULT)),
            alpha=float(data.get("alpha", ALPHA_DEFAULT)),
            beta=float(data.get("beta", BETA_DEFAULT)),
            A=float(data.get("A", A_DEFAULT)),
            phi=float(data.get("phi", PHI_DEFAULT)),
        )


@dataclass(frozen=True)
class InitialState:
    x0: float = X0_DEFAULT
    v0: float = V0_DEFAULT

    def perturbed(self, epsilon: float) -> tuple[float, float]:
        """Начальное состояние со сдвигом ε по обеим координатам."""
        return self.x0 + epsilon, self.v0 + epsilon

    def as_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, float]) -> "InitialState":
        return cls(x0=float(data.get("x0", X0_DEFAULT)), v0=float(data.get("v0", V0_DEFAULT)))


@dataclass(frozen=True)
class SimulationConfig:
    """
    Фиксированный шаг dt и горизонт t_max.

    Число шагов steps = floor(t_max / dt), траектория содержит steps + 1 точек.
    """

    dt: float = DT
    t_max: float = T_MAX

    def __post_init__(self) -> None:
        if not (math.isfinite(self.dt) and math.isfinite(self.t_max)):
            raise InvalidConfiguration(f"dt и t_max должны быть конечными: dt={self.dt}, t_max={self.t_max}")
        if self.dt <= 0:
            raise InvalidConfiguration(f"Шаг dt должен быть положительным, получено {self.dt}")
        if self.t_max <= 0:
            raise InvalidConfiguration(f"Горизонт t_max должен быть положительным, получено {self.t_max}")
        if not self.t_max / self.dt <= MAX_STEPS:
            raise InvalidConfiguration(f"Слишком много шагов: t_max / dt = {self.t_max / self.dt:g} > {MAX_STEPS}")
        if self.steps < 1:
            raise InvalidConfiguration(f"Горизонт t_max={self.t_max} меньше шага dt={self.dt}")

    @property
    def steps(self) -> int:
        return int(math.floor(self.t_max / self.dt + _STEPS_GUARD))

    @property
    def num_samples(self) -> int:
        return self.steps + 1


DEFAULT_CONFIG = SimulationConfig()


def configure_logging(level: int = logging.INFO) -> None:
    """Настройка логирования в файл и консоль (append)."""
    root = logging.getLogger()
    if root.handlers:
        return  # уже настроено

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    file_handler = logging.FileHandler(LOG_FILE, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root.setLevel(level)
    root.addHandler(file_handler)
    root.addHandler(console_handler)
