# app.py
"""Интерактивное приложение: осциллятор Дуффинга и чувствительность к начальным условиям."""

from __future__ import annotations

import logging

import dash
from dash import dcc, html, callback_context
from dash.dependencies import Input, Output, State
from dash.exceptions import PreventUpdate
import dash_daq as daq
import pandas as pd

from config import InitialState, PhysicalParameters, configure_logging
from constants import DEFAULT_EPSILONS, PARAM_LABELS
from plotting import create_phase_fig, create_time_series_fig, main_series, sensitivity_series
from sensitivity import SensitivitySet, parse_epsilons, run_sensitivity
from simulator import integrate

logger = logging.getLogger(__name__)

PARAM_KEYS = list(PARAM_LABELS)
PHYSICAL_KEYS = ("delta", "alpha", "beta", "A", "phi")
DIVERGED_STYLE = {"color": "#c0392b", "fontWeight": "bold"}


# --- чистые функции (вызываются из callback'ов и тестов) ------------------------

def default_store() -> dict:
    return {"params": PhysicalParameters().as_dict(), "init": InitialState().as_dict()}


def store_from_inputs(values) -> dict:
    """Значения полей ввода -> содержимое param-store. Пустое поле считается нулём."""
    data = {key: float(val) if val is not None else 0.0 for key, val in zip(PARAM_KEYS, values)}
    return {
        "params": {key: data[key] for key in PHYSICAL_KEYS},
        "init": {"x0": data["x0"], "v0": data["v0"]},
    }


def unpack_store(store: dict) -> tuple[PhysicalParameters, InitialState]:
    return PhysicalParameters.from_mapping(store["params"]), InitialState.from_mapping(store["init"])


def simulation_figures(store: dict):
    params, init = unpack_store(store)
    trajectory = integrate(params, init, on_instability="ignore")
    series = main_series(trajectory)

    x_fig = create_time_series_fig(series, "x", "Положение x(t)", "x(t)")
    v_fig = create_time_series_fig(series, "v", "Скорость x'(t)", "x'(t)")
    phase_fig = create_phase_fig(series)

    if trajectory.is_finite:
        status = ""
    else:
        idx = trajectory.first_nonfinite_index
        logger.warning("Решение разошлось при t=%.2f (%s)", trajectory.t[idx], params)
        status = f"Решение разошлось (inf/NaN) начиная с t = {trajectory.t[idx]:.2f}."
    return x_fig, v_fig, phase_fig, status


def compute_sensitivity(store: dict, epsilons_text: str | None) -> SensitivitySet:
    params, init = unpack_store(store)
    epsilons = parse_epsilons(epsilons_text) if epsilons_text else list(DEFAULT_EPSILONS)
    return run_sensitivity(params, init, epsilons, on_instability="ignore")


def sensitivity_figures(result: SensitivitySet):
    series = sensitivity_series(result)
    x_fig = create_time_series_fig(series, "x", "Сравнение траекторий x(t)", "x(t)")
    v_fig = create_time_series_fig(series, "v", "Сравнение скоростей x'(t)", "x'(t)")

    init = result.init
    status = f"Начальные условия: x(0) = {init.x0} + ε, x'(0) = {init.v0} + ε"
    if result.diverged:
        status += f". Разошлись запуски: {', '.join(f'{eps:g}' for eps in result.diverged)}"
    return x_fig, v_fig, status


def sensitivity_store_data(result: SensitivitySet) -> dict:
    """Таблица запусков для dcc.Store: колонка -> список значений."""
    return result.to_frame().to_dict("list")


def frame_from_store(data: dict) -> pd.DataFrame:
    return pd.DataFrame(data, columns=["epsilon", "run", "t", "x", "v"])


# --- разметка ------------------------------------------------------------------

def _param_input(key: str, value: float):
    return html.Div([
        html.Label(PARAM_LABELS[key], htmlFor=f"input-{key}"),
        dcc.Input(id=f"input-{key}", type="number", step=0.1, value=value, debounce=True,
                  style={"width": "100%"}),
    ], style={"flex": "1 0 30%", "padding": "5px"})


def _description_tab():
    return html.Div([
        html.H2("1. Осциллятор Дуффинга"),
        html.H3("Дифференциальное уравнение:"),
        html.Pre("d²x/dt² + δ·dx/dt + αx + βx³ = A·cos(φt)", style={"textAlign": "center"}),
        html.Ul([
            html.Li("Нелинейность: член βx³ делает уравнение нелинейным, общего аналитического решения нет."),
            html.Li("δ — затухание, α — линейная жёсткость, β — нелинейная жёсткость, "
                    "A — амплитуда и φ — частота внешней силы."),
            html.Li("β > 0: «жёсткая» пружина (жёсткость растёт со смещением); "
                    "β < 0: «мягкая» пружина; β → 0: линейный гармонический осциллятор."),
            html.Li("Решение строится численно: метод Рунге-Кутты 4-го порядка с шагом dt = 0.01 до t = 20."),
        ]),
    ])


def _simulation_tab(store: dict):
    values = {**store["params"], **store["init"]}
    return html.Div([
        html.H2("2. Численное моделирование"),
        html.Div([_param_input(key, values[key]) for key in PARAM_KEYS],
                 style={"display": "flex", "flexWrap": "wrap"}),
        html.Div([
            daq.BooleanSwitch(
                id="auto-calc-switch",
                on=True,
                label="Пересчёт при изменении параметров",
                labelPosition="top",
                color="#119DFF",
            ),
            html.Button("Моделировать", id="simulate-btn", style={"marginLeft": "30px"}),
        ], style={"display": "flex", "alignItems": "center", "margin": "10px 0"}),
        html.Div(id="simulation-status", style=DIVERGED_STYLE),
        html.Div([
            dcc.Graph(id="x-graph", style={"display": "inline-block", "width": "50%"}),
            dcc.Graph(id="v-graph", style={"display": "inline-block", "width": "50%"}),
        ]),
        dcc.Graph(id="phase-graph"),
        html.H3("3. Малые β"),
        html.P("При β → 0 осциллятор Дуффинга переходит в линейный затухающий осциллятор "
               "с внешней силой: колебания становятся регулярными и предсказуемыми."),
    ])


def _sensitivity_tab():
    return html.Div([
        html.H2("4. Чувствительность к начальным условиям"),
        html.Label("Возмущения ε (через запятую):", htmlFor="epsilons-input"),
        dcc.Input(id="epsilons-input", type="text", debounce=True,
                  value=", ".join(f"{eps:g}" for eps in DEFAULT_EPSILONS), style={"width": "300px"}),
        html.Button("Анализировать чувствительность", id="sensitivity-btn", style={"marginLeft": "10px"}),
        html.Button("Скачать данные", id="download-sensitivity-btn", style={"marginLeft": "10px"}),
        dcc.Download(id="download-sensitivity-file"),
        dcc.Store(id="sensitivity-store"),
        html.Div(id="sensitivity-status", style={"margin": "10px 0"}),
        html.Div([
            dcc.Graph(id="sensitivity-x-graph", style={"display": "inline-block", "width": "50%"}),
            dcc.Graph(id="sensitivity-v-graph", style={"display": "inline-block", "width": "50%"}),
        ]),
        html.P("При некоторых параметрах малые изменения начальных условий (малые ε) со временем "
               "приводят к совершенно разным траекториям."),
    ])


def _chaos_tab():
    return html.Div([
        html.H2("5. Чувствительность и хаос"),
        html.P("Чувствительность к начальным условиям: расстояние между траекториями, начинающимися "
               "рядом, растёт со временем. Осциллятор Дуффинга обладает этим свойством в хаотических "
               "режимах из-за нелинейного члена βx³."),
        html.P("Детерминированный хаос — апериодическое, внешне случайное поведение детерминированной "
               "нелинейной системы:"),
        html.Ul([
            html.Li("чувствительность к начальным условиям (эффект бабочки);"),
            html.Li("апериодичность;"),
            html.Li("детерминизм;"),
            html.Li("фрактальная структура в фазовом пространстве."),
        ]),
        html.P("В осцилляторе Дуффинга хаос возникает из конкуренции нелинейной восстанавливающей силы, "
               "затухания и периодической внешней силы. В зависимости от параметров возможны "
               "периодическое, квазипериодическое и хаотическое движение и сосуществование аттракторов."),
    ])


def build_layout():
    store = default_store()
    return html.Div([
        dcc.Store(id="param-store", data=store),
        html.H1("Осциллятор Дуффинга и чувствительность к начальным условиям"),
        dcc.Tabs(id="tabs", value="description", children=[
            dcc.Tab(label="Описание", value="description", children=_description_tab()),
            dcc.Tab(label="Моделирование", value="simulation", children=_simulation_tab(store)),
            dcc.Tab(label="Чувствительность", value="sensitivity", children=_sensitivity_tab()),
            dcc.Tab(label="Хаос", value="chaos", children=_chaos_tab()),
        ]),
    ], style={"maxWidth": "1400px", "margin": "0 auto"})


app = dash.Dash(__name__, title="Осциллятор Дуффинга")
server = app.server
app.layout = build_layout


# --- callbacks -----------------------------------------------------------------

@app.callback(
    Output("param-store", "data"),
    [Input(f"input-{key}", "value") for key in PARAM_KEYS],
    prevent_initial_call=True,
)
def update_params(*values):
    return store_from_inputs(values)


@app.callback(
    [Output("x-graph", "figure"),
     Output("v-graph", "figure"),
     Output("phase-graph", "figure"),
     Output("simulation-status", "children")],
    [Input("param-store", "data"),
     Input("simulate-btn", "n_clicks"),
     Input("auto-calc-switch", "on")],
)
def update_simulation(store, n_clicks, calc_on):
    triggered = [t["prop_id"] for t in callback_context.triggered]
    params_changed = any("param-store" in ti for ti in triggered)
    if params_changed and not calc_on:
        raise PreventUpdate
    logger.info("Пересчёт траектории: %s", store)
    return simulation_figures(store)


@app.callback(
    [Output("sensitivity-x-graph", "figure"),
     Output("sensitivity-v-graph", "figure"),
     Output("sensitivity-status", "children"),
     Output("sensitivity-store", "data")],
    Input("sensitivity-btn", "n_clicks"),
    [State("param-store", "data"),
     State("epsilons-input", "value")],
    prevent_initial_call=True,
)
def update_sensitivity(n_clicks, store, epsilons_text):
    if not n_clicks:
        raise PreventUpdate
    try:
        result = compute_sensitivity(store, epsilons_text)
    except ValueError as exc:
        logger.warning("Некорректный список ε: %s", exc)
        return dash.no_update, dash.no_update, str(exc), dash.no_update
    return (*sensitivity_figures(result), sensitivity_store_data(result))


@app.callback(
    Output("download-sensitivity-file", "data"),
    Input("download-sensitivity-btn", "n_clicks"),
    State("sensitivity-store", "data"),
    prevent_initial_call=True,
)
def download_sensitivity(n_clicks, data):
    # выгружаются ровно те запуски, что показаны на графиках
    if not n_clicks or data is None:
        raise PreventUpdate
    frame = frame_from_store(data)
    return dcc.send_data_frame(frame.to_csv, "duffing_sensitivity.csv", index=False)


def serve(host: str = "0.0.0.0", port: int = 8000, debug: bool = False) -> None:
    configure_logging()
    logger.info("Запуск интерфейса на %s:%d", host, port)
    app.run(debug=debug, host=host, port=port)


if __name__ == '__main__':
    serve()
