"""`cardwise deck ...` and `cardwise card ...` — content management commands."""

from typing import Annotated

import typer

from cardwise.application.due import count_due
from cardwise.application.factory import get_repositories, new_card, new_deck
from cardwise.application.utils.dates import now_ms
from cardwise.interface._common import config_from_context, run

deck_app = typer.Typer(help="Create, list and delete decks.", no_args_is_help=True)
card_app = typer.Typer(help="Add, edit and delete cards.", no_args_is_help=True)


# ---------------------------------------------------------------------------
# Decks
# ---------------------------------------------------------------------------


@deck_app.command("add")
def deck_add(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Deck name.")],
    description: Annotated[str, typer.Option("--description", "-d")] = "",
    tag: Annotated[list[str] | None, typer.Option("--tag", "-t", help="Repeatable.")] = None,
):
    """Create a new, empty deck."""
    config = config_from_context(ctx)

    async def _add():
        repos = get_repositories(config)
        deck = new_deck(name, now_ms(), description=description, tags=tag or [])
        await repos.decks.save(deck)
        return deck

    deck = run(_add())
    typer.echo(deck.id)


@deck_app.command("list")
def deck_list(ctx: typer.Context):
    """List decks with their card and due counts."""
    config = config_from_context(ctx)

    async def _list():
        repos = get_repositories(config)
        now = now_ms()
        rows = []
        for deck in await repos.decks.list_all():
            cards = await repos.cards.list_many(deck.card_ids)
            rows.append((deck, len(cards), count_due(cards, now, config.tz)))
        return rows

    rows = run(_list())
    if not rows:
        typer.echo("No decks yet. Create one with `cardwise deck add NAME`.")
        return

    for deck, total, due in rows:
        typer.echo(f"{deck.id}  {deck.name}  ({total} cards, {due} due)")


@deck_app.command("delete")
def deck_delete(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Deck to delete.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation.")] = False,
):
    """Delete a deck together with its cards."""
    config = config_from_context(ctx)

    async def _load():
        return await get_repositories(config).decks.get(deck_id)

    deck = run(_load())
    if not yes:
        typer.confirm(
            f"Delete deck {deck.name!r} and its {len(deck.card_ids)} cards?", abort=True
        )

    async def _delete():
        repos = get_repositories(config)
        for card_id in deck.card_ids:
            await repos.cards.delete(card_id)
        await repos.decks.delete(deck.id)

    run(_delete())
    typer.echo(f"Deleted {deck.id}")


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


@card_app.command("add")
def card_add(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Deck to add the card to.")],
    front: Annotated[str, typer.Argument(help="Question side.")],
    back: Annotated[str, typer.Argument(help="Answer side.")],
):
    """Add a card to a deck. New cards are due immediately."""
    config = config_from_context(ctx)

    async def _add():
        repos = get_repositories(config)
        now = now_ms()
        await repos.decks.get(deck_id)
        card = new_card(deck_id, front, back, now, tz=config.tz)
        await repos.cards.save(card)
        await repos.decks.add_card(deck_id, card.id, now)
        return card

    card = run(_add())
    typer.echo(card.id)


@card_app.command("edit")
def card_edit(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to edit.")],
    front: Annotated[str | None, typer.Option(help="New question side.")] = None,
    back: Annotated[str | None, typer.Option(help="New answer side.")] = None,
):
    """Change a card's front or back. Its schedule is kept."""
    if front is None and back is None:
        raise typer.BadParameter("Give --front, --back or both.")
    config = config_from_context(ctx)

    async def _edit():
        return await get_repositories(config).cards.edit(
            card_id, now_ms(), front=front, back=back
        )

    card = run(_edit())
    typer.echo(f"Updated {card.id}")


@card_app.command("delete")
def card_delete(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to delete.")],
):
    """Delete a card and detach it from its deck."""
    config = config_from_context(ctx)

    async def _delete():
        repos = get_repositories(config)
        card = await repos.cards.get(card_id)
        if card.deck_id and await repos.decks.find(card.deck_id):
            await repos.decks.remove_card(card.deck_id, card.id, now_ms())
        await repos.cards.delete(card.id)

    run(_delete())
    typer.echo(f"Deleted {card_id}")
