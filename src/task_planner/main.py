"""CLI entrypoint for task-planner."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import rich_click as click

from task_planner import __version__
from task_planner.config import LOG_LEVELS, Settings
from task_planner.controllers import PlanCommand, PlannerCliController, PlanUpdateCommand
from task_planner.plan.errors import PlannerError

click.rich_click.USE_MARKDOWN = True
PLANNER_CONTROLLER = PlannerCliController()

CommandT = TypeVar("CommandT", bound=PlanCommand)

plan_option = click.option(
    "--plan",
    "plan_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    required=True,
    help="JSON plan document.",
)
db_path_option = click.option(
    "--db-path",
    type=click.Path(path_type=Path),
    default=None,
    help="SQLite DB path.",
)
plan_id_option = click.option(
    "--plan-id",
    default=None,
    help="Status scope inside the DB, defaults to TASK_PLANNER_PLAN_ID.",
)
set_option = click.option(
    "--set",
    "assignments",
    multiple=True,
    metavar="NAME=STATUS",
    help="Status update applied before evaluation. Can be repeated.",
)


@click.group()
@click.version_option(version=__version__, prog_name="task-planner")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level, defaults to TASK_PLANNER_LOG_LEVEL.",
)
def task_planner(log_level: str | None) -> None:
    """Evaluate serial/parallel task plans against tracked task statuses."""

    try:
        settings = Settings.from_env()
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=logging.getLevelName(level) if level in LOG_LEVELS else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


@task_planner.command("init")
@plan_option
@db_path_option
@plan_id_option
def plan_init(plan_path: Path, db_path: Path | None, plan_id: str | None) -> None:
    """Migrate the status store and register the plan's tasks."""

    _emit_lines(
        _run(
            PLANNER_CONTROLLER.init,
            PlanCommand(plan_path=plan_path, db_path=db_path, plan_id=plan_id),
        ),
    )


@task_planner.command("next")
@plan_option
@db_path_option
@plan_id_option
@set_option
def plan_next(
    plan_path: Path,
    db_path: Path | None,
    plan_id: str | None,
    assignments: tuple[str, ...],
) -> None:
    """Apply status updates and print the tasks eligible to run, one per line."""

    _emit_lines(
        _run(
            PLANNER_CONTROLLER.next,
            PlanUpdateCommand(
                plan_path=plan_path,
                db_path=db_path,
                plan_id=plan_id,
                assignments=assignments,
            ),
        ),
    )


@task_planner.command("state")
@plan_option
@db_path_option
@plan_id_option
@set_option
def plan_state(
    plan_path: Path,
    db_path: Path | None,
    plan_id: str | None,
    assignments: tuple[str, ...],
) -> None:
    """Apply status updates and print the rolled-up plan status."""

    _emit_lines(
        _run(
            PLANNER_CONTROLLER.state,
            PlanUpdateCommand(
                plan_path=plan_path,
                db_path=db_path,
                plan_id=plan_id,
                assignments=assignments,
            ),
        ),
    )


@task_planner.command("show")
@plan_option
@db_path_option
@plan_id_option
def plan_show(plan_path: Path, db_path: Path | None, plan_id: str | None) -> None:
    """Print the plan tree with the stored status of every task."""

    _emit_lines(
        _run(
            PLANNER_CONTROLLER.show,
            PlanCommand(plan_path=plan_path, db_path=db_path, plan_id=plan_id),
        ),
    )


@task_planner.command("reset")
@plan_option
@db_path_option
@plan_id_option
def plan_reset(plan_path: Path, db_path: Path | None, plan_id: str | None) -> None:
    """Set every task of the plan back to unstarted."""

    _emit_lines(
        _run(
            PLANNER_CONTROLLER.reset,
            PlanCommand(plan_path=plan_path, db_path=db_path, plan_id=plan_id),
        ),
    )


def _run(action: Callable[[CommandT], list[str]], command: CommandT) -> list[str]:
    try:
        return action(command)
    except (PlannerError, ValueError) as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    task_planner()
