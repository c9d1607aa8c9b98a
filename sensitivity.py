"""Чувствительность к начальным условиям: серия запусков с возмущением ε."""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
import logging
import os
import re
import time
from typing import Iterator, Sequence

import pandas as pd

from config import DEFAULT_CONFIG, InitialState, PhysicalParameters, SimulationConfig
from simulator import Trajectory, check_instability_mode, integrate, report_instability

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SensitivitySet:
    """
    Набор траекторий с общими параметрами, отличающихся только сдвигом ε.

    Порядок совпадает с порядком входного списка ε, повторы сохраняются.
    """

    params: PhysicalParameters
    init: InitialState
    config: SimulationConfig
    runs: tuple[Trajectory, ...]

    def __len__(self) -> int:
        return len(self.runs)

    def __getitem__(self, index: int) -> Trajectory:
        return self.runs[index]

    def __iter__(self) -> Iterator[Trajectory]:
        return iter(self.runs)

    @property
    def epsilons(self) -> list[float]:
        return [run.epsilon for run in self.runs]

    @property
    def diverged(self) -> list[float]:
        """ε тех запусков, где решение ушло в inf/NaN."""
        return [run.epsilon for run in self.runs if not run.is_finite]

    def items(self) -> list[tuple[float, Trajectory]]:
        return [(run.epsilon, run) for run in self.runs]

    def to_frame(self) -> pd.DataFrame:
        """Длинная таблица: epsilon, run, t, x, v."""
        frames = []
        for idx, run in enumerate(self.runs):
            frame = run.to_frame()
            frame.insert(0, "run", idx)
            frame.insert(0, "epsilon", run.epsilon)
            frames.append(frame)
        return pd.concat(frames, ignore_index=True)


def _integrate_task(task):
    params, init, epsilon, config = task
    return integrate(params, init, epsilon=epsilon, config=config, on_instability="ignore")


def _own_arrays(run: Trajectory) -> Trajectory:
    """Копия траектории, пришедшей из другого процесса: массивы снова только для чтения."""
    return Trajectory(t=run.t.copy(), x=run.x.copy(), v=run.v.copy(), epsilon=run.epsilon)


def run_sensitivity(
    params: PhysicalParameters,
    init: InitialState,
    epsilons: Sequence[float],
    config: SimulationConfig = DEFAULT_CONFIG,
    max_workers: int | None = None,
    use_processes: bool = False,
    on_instability: str = "warn",
) -> SensitivitySet:
    """
    Запускает интегратор для каждого ε из *epsilons* с теми же параметрами.

    Запуски независимы и считаются в пуле (потоки по умолчанию: ядро RK4
    отпускает GIL). executor.map сохраняет порядок входного списка.
    Расходимость проверяется в вызывающем процессе, в порядке входного списка.
    """
    check_instability_mode(on_instability)
    epsilons = [float(eps) for eps in epsilons]
    if not epsilons:
        raise ValueError("Список возмущений ε пуст.")

    if max_workers is None:
        max_workers = min(len(epsilons), os.cpu_count() or 1)
    elif max_workers < 1:
        raise ValueError(f"Число воркеров должно быть не меньше 1, получено {max_workers}")
    tasks = [(params, init, eps, config) for eps in epsilons]

    start = time.perf_counter()
    if max_workers == 1 or len(tasks) == 1:
        runs = [_integrate_task(task) for task in tasks]
    elif use_processes:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            runs = [_own_arrays(run) for run in executor.map(_integrate_task, tasks)]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            runs = list(executor.map(_integrate_task, tasks))

    logger.info(
        "Анализ чувствительности: %d запусков (ε=%s), воркеров: %d, %.3f с",
        len(runs),
        epsilons,
        max_workers,
        time.perf_counter() - start,
    )
    for run in runs:
        report_instability(run, on_instability)

    result = SensitivitySet(params=params, init=init, config=config, runs=tuple(runs))
    if result.diverged:
        logger.warning("Разошедшиеся запуски: ε=%s", result.diverged)
    return result


def parse_epsilons(text: str) -> list[float]:
    """Разбор строки вида "0, 0.01 0.05" в список ε."""
    tokens = [tok for tok in re.split(r"[,;\s]+", text.strip()) if tok]
    if not tokens:
        raise ValueError("Не задано ни одного значения ε.")
    values = []
    for tok in tokens:
        try:
            values.append(float(tok))
        except ValueError:
            raise ValueError(f"Некорректное значение ε: {tok!r}") from None
    return values
