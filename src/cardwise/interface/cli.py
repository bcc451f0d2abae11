"""cardwise CLI — root commands and subgroup registration."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from cardwise.application.due import select_due
from cardwise.application.factory import get_repositories
from cardwise.application.session import StudySession
from cardwise.application.utils.dates import describe_due, format_study_time, now_ms
from cardwise.domain.errors import InvalidOutcome
from cardwise.domain.models import ReviewOutcome, parse_outcome
from cardwise.interface._common import config_from_context, humanize_error, run

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cardwise: spaced-repetition flashcards in your terminal.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Register subgroups
# ---------------------------------------------------------------------------

from cardwise.interface.deck_commands import card_app, deck_app  # noqa: E402
from cardwise.interface.serve_commands import server  # noqa: E402

app.add_typer(deck_app, name="deck")
app.add_typer(card_app, name="card")
app.command("server")(server)

config_app = typer.Typer(help="Manage cardwise configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    data_dir: Annotated[
        Path | None, typer.Option(help="Where decks, cards and stats are stored.")
    ] = None,
    timezone: Annotated[
        str | None, typer.Option(help="IANA timezone whose midnight starts a new day.")
    ] = None,
):
    """Global settings for cardwise."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose
    ctx.obj["data_dir"] = data_dir
    ctx.obj["timezone"] = timezone
    logging.getLogger("cardwise").setLevel(_LOG_LEVELS.get(verbose, logging.DEBUG))


# ---------------------------------------------------------------------------
# Study commands
# ---------------------------------------------------------------------------

GRADE_HELP = "1=forgot 2=hard 3=good 4=easy"


def parse_grade(text: str) -> ReviewOutcome:
    """
    Read a grade typed at the prompt: 1-4, or an outcome name.

    Raises:
        InvalidOutcome: for anything else.
    """
    text = text.strip()
    if text.isdigit():
        value = int(text)
        if 1 <= value <= 4:
            return ReviewOutcome(value - 1)
        raise InvalidOutcome(text)
    return parse_outcome(text)


@app.command()
def due(
    ctx: typer.Context,
    deck_id: Annotated[str | None, typer.Argument(help="Limit to one deck.")] = None,
):
    """List cards that are due for review."""
    config = config_from_context(ctx)

    async def _due():
        repos = get_repositories(config)
        if deck_id:
            deck = await repos.decks.get(deck_id)
            cards = await repos.cards.list_many(deck.card_ids)
        else:
            cards = await repos.cards.list_all()
        return select_due(cards, now_ms(), config.tz)

    cards = run(_due())
    if not cards:
        typer.echo("Nothing due. Come back tomorrow!")
        return

    now = now_ms()
    for card in cards:
        typer.echo(f"{card.id}  {card.front}  [{describe_due(card.due_date, now, config.tz)}]")


@app.command()
def review(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Deck to study.")],
    all_cards: Annotated[
        bool, typer.Option("--all", help="Study every card, not only the due ones.")
    ] = False,
    limit: Annotated[
        int | None, typer.Option(help="Maximum cards this session. Defaults to daily_goal.")
    ] = None,
):
    """[bold green]Review[/bold green] a deck interactively."""
    config = config_from_context(ctx)
    goal = config.daily_goal if limit is None else limit

    async def _review():
        repos = get_repositories(config)
        session = StudySession(repos, deck_id, tz=config.tz, daily_goal=goal)
        queued = await session.start(now_ms(), include_all=all_cards)
        if queued == 0 and session.deck_size == 0:
            typer.echo("This deck has no cards yet.")
            return None
        if queued == 0:
            typer.echo("Nothing due in this deck.")
            if not typer.confirm(f"Study all {session.deck_size} cards anyway?", default=False):
                return None
            session = StudySession(repos, deck_id, tz=config.tz, daily_goal=goal)
            await session.start(now_ms(), include_all=True)

        while session.current is not None:
            card = session.current
            typer.echo("")
            typer.secho(card.front, bold=True)
            typer.prompt("Press Enter to reveal", default="", show_default=False)
            typer.echo(card.back)

            while True:
                raw = typer.prompt(f"Grade ({GRADE_HELP})")
                try:
                    outcome = parse_grade(raw)
                    break
                except InvalidOutcome as e:
                    typer.secho(humanize_error(e), fg=typer.colors.YELLOW, err=True)

            result = await session.answer(outcome, now_ms())
            typer.echo(
                f"+{result.xp_earned} XP, "
                f"{describe_due(result.card.due_date, now_ms(), config.tz)}"
            )
            if result.leveled_up:
                typer.secho(f"Level up! You are now level {result.stats.level}.", fg="green")

        finished = await session.finish(now_ms())
        return finished, await repos.stats.load()

    summary = run(_review())
    if summary is None:
        return

    finished, user_stats = summary
    typer.echo("")
    typer.echo(
        f"Session complete: {len(finished.cards_reviewed)} cards in "
        f"{format_study_time(finished.duration_ms)}. Streak: {user_stats.streak} day(s)."
    )


@app.command()
def stats(ctx: typer.Context):
    """Show streak, experience and totals."""
    config = config_from_context(ctx)

    async def _stats():
        return await get_repositories(config).stats.load()

    s = run(_stats())
    typer.echo(f"Level:          {s.level}")
    typer.echo(f"XP:             {s.xp_points}")
    typer.echo(f"Streak:         {s.streak} day(s)")
    typer.echo(f"Cards reviewed: {s.total_cards_reviewed}")
    typer.echo(f"Study time:     {format_study_time(s.total_study_time_ms)}")


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Print the resolved configuration as JSON."""
    config = config_from_context(ctx)
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))
