"""Запуск моделирования и анализа чувствительности из корня проекта."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from config import InitialState, PhysicalParameters, SimulationConfig, configure_logging
from constants import DEFAULT_EPSILONS, DT, T_MAX
from simulator import NumericalInstability

logger = logging.getLogger(__name__)


def _add_model_args(parser: argparse.ArgumentParser) -> None:
    defaults = {**PhysicalParameters().as_dict(), **InitialState().as_dict()}
    group = parser.add_argument_group("параметры модели")
    for key, value in defaults.items():
        group.add_argument(f"--{key}", type=float, default=value, help=f"(по умолчанию {value})")
    group.add_argument("--dt", type=float, default=DT, help=f"Шаг интегрирования (по умолчанию {DT}).")
    group.add_argument("--t-max", type=float, default=T_MAX, help=f"Горизонт (по умолчанию {T_MAX}).")
    parser.add_argument("--output", type=str, default=None, help="CSV-файл для сохранения траекторий.")
    parser.add_argument("--show", action="store_true", help="Открыть графики в браузере.")
    parser.add_argument("--strict", action="store_true", help="Считать расходимость (inf/NaN) ошибкой.")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Осциллятор Дуффинга: моделирование и чувствительность.")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Одна траектория.")
    _add_model_args(sim)
    sim.add_argument("--epsilon", type=float, default=0.0, help="Сдвиг начальных условий.")
    sim.add_argument("--check-accuracy", action="store_true",
                     help="Сравнить с эталонным решением solve_ivp (DOP853).")

    sens = sub.add_parser("sensitivity", help="Серия траекторий с возмущением ε.")
    _add_model_args(sens)
    sens.add_argument("--epsilons", type=float, nargs="+", default=list(DEFAULT_EPSILONS),
                      help="Список ε (по умолчанию %(default)s).")
    sens.add_argument("--workers", type=int, default=None, help="Число воркеров пула.")
    sens.add_argument("--processes", action="store_true", help="Пул процессов вместо потоков.")

    serve = sub.add_parser("serve", help="Веб-интерфейс (Dash).")
    serve.add_argument("--host", type=str, default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--debug", action="store_true")
    return parser.parse_args(argv)


def _model_from_args(args: argparse.Namespace):
    params = PhysicalParameters(delta=args.delta, alpha=args.alpha, beta=args.beta, A=args.A, phi=args.phi)
    init = InitialState(x0=args.x0, v0=args.v0)
    config = SimulationConfig(dt=args.dt, t_max=args.t_max)
    return params, init, config


def run_simulate(args: argparse.Namespace) -> None:
    from plotting import create_phase_fig, create_time_series_fig, main_series
    from simulator import integrate, max_deviation, reference_solution

    params, init, config = _model_from_args(args)
    on_instability = "raise" if args.strict else "warn"
    trajectory = integrate(params, init, epsilon=args.epsilon, config=config, on_instability=on_instability)
    last = trajectory[-1]
    logger.info("Траектория: %d точек, x(%.2f)=%.6f, v(%.2f)=%.6f", len(trajectory), last.t, last.x, last.t, last.v)

    if args.check_accuracy:
        reference = reference_solution(params, init, epsilon=args.epsilon, config=config)
        logger.info("Отклонение от эталона DOP853: %.3e", max_deviation(trajectory, reference))

    if args.output:
        trajectory.to_frame().to_csv(Path(args.output), index=False)
        logger.info("Сохранено в %s", args.output)

    if args.show:
        series = main_series(trajectory)
        create_time_series_fig(series, "x", "Положение x(t)", "x(t)").show()
        create_time_series_fig(series, "v", "Скорость x'(t)", "x'(t)").show()
        create_phase_fig(series).show()


def run_sensitivity_cmd(args: argparse.Namespace) -> None:
    from plotting import create_time_series_fig, sensitivity_series
    from sensitivity import run_sensitivity

    params, init, config = _model_from_args(args)
    on_instability = "raise" if args.strict else "warn"
    result = run_sensitivity(
        params,
        init,
        args.epsilons,
        config=config,
        max_workers=args.workers,
        use_processes=args.processes,
        on_instability=on_instability,
    )
    reference = result[0]
    for run in result:
        logger.info("ε=%g: x(T)=%.6f, |Δx(T)|=%.3e", run.epsilon, run.x[-1], abs(run.x[-1] - reference.x[-1]))

    if args.output:
        result.to_frame().to_csv(Path(args.output), index=False)
        logger.info("Сохранено в %s", args.output)

    if args.show:
        series = sensitivity_series(result)
        create_time_series_fig(series, "x", "Сравнение траекторий x(t)", "x(t)").show()
        create_time_series_fig(series, "v", "Сравнение скоростей x'(t)", "x'(t)").show()


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging()

    if args.command == "serve":
        from app import serve
        serve(host=args.host, port=args.port, debug=args.debug)
        return 0

    try:
        if args.command == "simulate":
            run_simulate(args)
        else:
            run_sensitivity_cmd(args)
    except (ValueError, NumericalInstability) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
