"""Визуализация траекторий осциллятора Дуффинга."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import cycle
from typing import Sequence

import plotly.graph_objects as go

from constants import MAIN_SERIES_NAME, SERIES_COLORS
from sensitivity import SensitivitySet
from simulator import Trajectory

LINE_WIDTH = 2
AXIS_STYLE = dict(showline=True, linewidth=1, linecolor="black", mirror=True, showgrid=True, gridcolor="#cccccc", gridwidth=1)


@dataclass
class SeriesData:
    name: str
    color: str
    trajectory: Trajectory


def epsilon_label(epsilon: float) -> str:
    return f"ε = {epsilon:g}"


def main_series(trajectory: Trajectory) -> list[SeriesData]:
    return [SeriesData(name=MAIN_SERIES_NAME, color=SERIES_COLORS[0], trajectory=trajectory)]


def sensitivity_series(result: SensitivitySet) -> list[SeriesData]:
    """По одной серии на каждый ε; цвета повторяются по кругу."""
    return [
        SeriesData(name=epsilon_label(run.epsilon), color=color, trajectory=run)
        for run, color in zip(result, cycle(SERIES_COLORS))
    ]


def _base_layout(fig: go.Figure, title: str, x_title: str, y_title: str) -> go.Figure:
    fig.update_layout(
        title=title,
        xaxis_title=x_title,
        yaxis_title=y_title,
        hovermode="x unified",
        font=dict(size=14),
        template="plotly_white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    fig.update_xaxes(**AXIS_STYLE)
    fig.update_yaxes(**AXIS_STYLE)
    return fig


def create_time_series_fig(series: Sequence[SeriesData], y_key: str = "x", title: str = "", y_label: str = "x(t)"):
    """
    Строит график y(t) для всех серий.

    y_key: "x" (положение) или "v" (скорость).
    """
    if y_key not in ("x", "v"):
        raise ValueError(f"y_key должен быть 'x' или 'v', получено {y_key!r}")

    fig = go.Figure()
    for s in series:
        fig.add_trace(
            go.Scatter(
                x=s.trajectory.t,
                y=getattr(s.trajectory, y_key),
                mode="lines",
                line=dict(width=LINE_WIDTH, color=s.color),
                name=s.name,
            )
        )
    return _base_layout(fig, title, "t", y_label)


def create_phase_fig(series: Sequence[SeriesData], title: str = "Фазовый портрет"):
    """Фазовый портрет v(x)."""
    fig = go.Figure()
    for s in series:
        fig.add_trace(
            go.Scatter(
                x=s.trajectory.x,
                y=s.trajectory.v,
                mode="lines",
                line=dict(width=1, color=s.color),
                name=s.name,
            )
        )
    fig = _base_layout(fig, title, "x", "x'")
    fig.update_layout(hovermode="closest")
    return fig


__all__ = [
    "SeriesData",
    "epsilon_label",
    "main_series",
    "sensitivity_series",
    "create_time_series_fig",
    "create_phase_fig",
]
