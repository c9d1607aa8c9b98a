"""
Базовые константы модели осциллятора Дуффинга.

Файл содержит:
- параметры численной схемы (шаг dt и горизонт T_MAX);
- набор параметров и начальных условий по умолчанию;
- список возмущений ε для анализа чувствительности;
- цвета серий и подписи полей для интерфейса.
"""

from __future__ import annotations

from pathlib import Path

# --- численная схема ----------------------------------------------------------
DT = 0.01
T_MAX = 20.0

# --- параметры по умолчанию ----------------------------------------------------
DELTA_DEFAULT = 0.1   # затухание
ALPHA_DEFAULT = 1.0   # линейная жёсткость
BETA_DEFAULT = 0.3    # нелинейная жёсткость (знак: жёсткая/мягкая пружина)
A_DEFAULT = 0.5       # амплитуда внешней силы
PHI_DEFAULT = 1.0     # частота внешней силы
X0_DEFAULT = 1.0
V0_DEFAULT = 2.0

DEFAULT_EPSILONS = (0.0, 0.01, 0.05, 0.1, 0.2)

# --- интерфейс -----------------------------------------------------------------
MAIN_SERIES_NAME = "Основное решение"
SERIES_COLORS = ("#8884d8", "#82ca9d", "#ffc658", "#ff7c7c", "#8dd1e1")

PARAM_LABELS = {
    "delta": "δ (затухание)",
    "alpha": "α (линейная жёсткость)",
    "beta": "β (нелинейная жёсткость)",
    "A": "A (амплитуда силы)",
    "phi": "φ (частота силы)",
    "x0": "x(0) (начальное положение)",
    "v0": "x'(0) (начальная скорость)",
}

BASE_DIR = Path(__file__).resolve().parent
LOG_DIR = BASE_DIR / "logs"
LOG_FILE = LOG_DIR / "duffing.log"


__all__ = [
    # схема
    "DT",
    "T_MAX",
    # параметры
    "DELTA_DEFAULT",
    "ALPHA_DEFAULT",
    "BETA_DEFAULT",
    "A_DEFAULT",
    "PHI_DEFAULT",
    "X0_DEFAULT",
    "V0_DEFAULT",
    "DEFAULT_EPSILONS",
    # интерфейс
    "MAIN_SERIES_NAME",
    "SERIES_COLORS",
    "PARAM_LABELS",
    # пути
    "BASE_DIR",
    "LOG_DIR",
    "LOG_FILE",
]
