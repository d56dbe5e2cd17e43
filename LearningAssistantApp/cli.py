"""Command line entry point: schema bootstrap and small administrative tasks."""
from dataclasses import replace
import logging

import click

from LearningAssistantApp.application import LearningAssistantApplication
from LearningAssistantApp.core.choices import EnrollmentLevel, UserRole
from LearningAssistantApp.core.config import Settings
from LearningAssistantApp.core.exceptions import DatabaseIntegrityError, LearningAssistantError
from LearningAssistantApp.core.log_config import configure_logging
from LearningAssistantApp.core.validators import validate_matricule
from LearningAssistantApp.users.models import ValidRegistrationID

logger = logging.getLogger(__name__)

ROLE_CHOICE = click.Choice([role.value for role in UserRole], case_sensitive=False)
LEVEL_CHOICE = click.Choice([level.value for level in EnrollmentLevel], case_sensitive=False)


def _started(ctx: click.Context) -> LearningAssistantApplication:
    app = ctx.obj
    try:
        app.start()
    except LearningAssistantError as e:
        raise click.ClickException(f"Could not open the database: {e.message}")
    return app


@click.group()
@click.option('--database-url', envvar='DATABASE_URL', default=None,
              help='SQLAlchemy URL, e.g. sqlite:///learning.db (defaults to the DB_* settings)')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging verbosity (defaults to LOG_LEVEL)')
@click.pass_context
def cli(ctx: click.Context, database_url: str | None, log_level: str | None) -> None:
    """Learning assistant administration."""
    settings = Settings()
    if database_url:
        settings = replace(settings, database_url=database_url)
    configure_logging(log_level or settings.log_level, settings.log_file)

    app = LearningAssistantApplication(settings)
    ctx.obj = app
    ctx.call_on_close(app.shutdown)


@cli.command('init-db')
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the schema if missing and seed the default allowlist."""
    app = _started(ctx)
    click.echo(f"Schema ready, {app.valid_ids.count()} allowlisted identifiers")


@cli.command('add-valid-id')
@click.argument('matricule')
@click.option('--role', type=ROLE_CHOICE, required=True, help='Role the identifier may register as')
@click.option('--level', type=LEVEL_CHOICE, default=None, help='Enrollment level copied onto the user')
@click.option('--university', default=None, help='University name copied onto the user')
@click.pass_context
def add_valid_id(ctx: click.Context, matricule: str, role: str, level: str | None, university: str | None) -> None:
    """Allowlist MATRICULE for signup."""
    role = UserRole(role.lower())
    try:
        normalized = validate_matricule(matricule, role)
    except LearningAssistantError as e:
        raise click.BadParameter(e.message, param_hint='MATRICULE')

    app = _started(ctx)
    try:
        app.valid_ids.add(ValidRegistrationID(normalized, role, level.upper() if level else None, university))
    except DatabaseIntegrityError:
        raise click.ClickException(f"{normalized} is already allowlisted")
    except LearningAssistantError as e:
        logger.exception("add-valid-id failed")
        raise click.ClickException(e.message)
    click.echo(f"Allowlisted {normalized} as {role.value}")


@cli.command()
@click.option('--matricule', required=True, help='Allowlisted registration identifier')
@click.option('--role', type=ROLE_CHOICE, required=True)
@click.option('--name', required=True, help='Display name')
@click.password_option(help='Account password')
@click.pass_context
def signup(ctx: click.Context, matricule: str, role: str, name: str, password: str) -> None:
    """Register an account for an allowlisted matricule."""
    app = _started(ctx)
    try:
        result = app.auth.signup(name, matricule, role.lower(), password)
    except LearningAssistantError as e:
        logger.exception("signup failed")
        raise click.ClickException(e.message)
    if not result.success:
        raise click.ClickException(f"Signup failed: {result.failure.value}")
    click.echo(f"Registered {result.user.name} ({result.user.matricule})")


@cli.command()
@click.option('--exercise-id', type=int, multiple=True, help='Exercise to report on (repeatable)')
@click.option('--practical-work-id', type=int, multiple=True, help='Practical work to report on (repeatable)')
@click.option('--quiz-id', type=int, multiple=True, help='Quiz to report on (repeatable)')
@click.option('--teacher-id', type=int, default=None, help='Also print what this teacher has published')
@click.pass_context
def stats(ctx: click.Context, exercise_id, practical_work_id, quiz_id, teacher_id: int | None) -> None:
    """Print submission progress."""
    app = _started(ctx)
    statistics = app.statistics
    try:
        click.echo(f"Students: {statistics.total_students()}")
        for item_id in exercise_id:
            click.echo(f"Exercise {item_id}: {statistics.exercise_progress(item_id):.1f}%")
        for item_id in practical_work_id:
            click.echo(f"Practical work {item_id}: {statistics.practical_work_progress(item_id):.1f}%")
        for item_id in quiz_id:
            click.echo(f"Quiz {item_id}: {statistics.quiz_progress(item_id):.1f}%")
        if teacher_id is not None:
            for kind, count in statistics.teacher_overview(teacher_id).items():
                click.echo(f"{kind}: {count}")
    except LearningAssistantError as e:
        logger.exception("stats failed")
        raise click.ClickException(e.message)


def main() -> None:
    """Entry point for the application."""
    cli()


if __name__ == "__main__":
    main()
