"""JokeStream CLI - Entry point."""

import asyncio
import logging

import click

from jokestream import __version__
from jokestream.app import JokeStreamApp, create_app
from jokestream.client import Joke, JokeStreamError, NetworkError
from jokestream.settings import FilterStrength

filter_option = click.option(
    "--filter/--no-filter",
    "filter_enabled",
    default=None,
    help="Override the configured content filter setting.",
)


def _echo_joke(joke: Joke) -> None:
    click.echo(f"[{joke.id}] {joke.text}")


def _run(coro):
    try:
        return asyncio.run(coro)
    except JokeStreamError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """JokeStream - endless dad jokes with an optional content filter."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = create_app()


@main.command()
@filter_option
@click.pass_obj
def random(app: JokeStreamApp, filter_enabled: bool | None) -> None:
    """Print one random joke."""

    async def run() -> Joke:
        async with app.service.client:
            return await app.service.get_random_joke(filter_enabled=filter_enabled)

    _echo_joke(_run(run()))


@main.command()
@click.argument("count", type=click.IntRange(min=1), required=False)
@filter_option
@click.pass_obj
def batch(app: JokeStreamApp, count: int | None, filter_enabled: bool | None) -> None:
    """Print COUNT random jokes fetched concurrently."""
    count = count or app.config.get("fetch", "batch_size", default=5)

    async def run() -> list[Joke]:
        async with app.service.client:
            return await app.service.get_random_jokes(count, filter_enabled=filter_enabled)

    jokes = _run(run())
    for joke in jokes:
        _echo_joke(joke)
    if len(jokes) < count:
        click.echo(f"Only {len(jokes)} of {count} jokes could be fetched.", err=True)


@main.command()
@click.option("--count", "-n", type=click.IntRange(min=1), help="Stop after COUNT jokes.")
@click.option(
    "--interval",
    default=5.0,
    show_default=True,
    type=click.FloatRange(min=0),
    help="Seconds between jokes.",
)
@filter_option
@click.pass_obj
def stream(
    app: JokeStreamApp,
    count: int | None,
    interval: float,
    filter_enabled: bool | None,
) -> None:
    """Print jokes until interrupted (or COUNT is reached).

    Jokes are prefetched in batches of fetch.batch_size. Edits to the config
    files are picked up while streaming.
    """
    batch_size = app.config.get("fetch", "batch_size", default=5)

    async def run() -> None:
        await app.config.start_watching()
        try:
            async with app.service.client:
                shown = 0
                while count is None or shown < count:
                    wanted = batch_size if count is None else min(batch_size, count - shown)
                    jokes = await app.service.get_random_jokes(wanted, filter_enabled=filter_enabled)
                    if not jokes:
                        raise NetworkError("No jokes could be fetched")
                    for joke in jokes:
                        if shown:
                            await asyncio.sleep(interval)
                        _echo_joke(joke)
                        shown += 1
        finally:
            await app.config.stop_watching()

    _run(run())


@main.command()
@click.argument("term")
@click.option("--page", default=1, type=click.IntRange(min=1))
@click.option("--limit", default=20, type=click.IntRange(min=1, max=30))
@filter_option
@click.pass_obj
def search(
    app: JokeStreamApp,
    term: str,
    page: int,
    limit: int,
    filter_enabled: bool | None,
) -> None:
    """Search jokes for TERM."""

    async def run():
        async with app.service.client:
            return await app.service.search_jokes(
                term, page=page, limit=limit, filter_enabled=filter_enabled
            )

    results = _run(run())
    for joke in results.results:
        _echo_joke(joke)
    click.echo(
        f"Page {results.current_page}/{results.total_pages} "
        f"({results.total_jokes} jokes match '{results.search_term}')"
    )


@main.command()
@click.argument("joke_id")
@click.pass_obj
def joke(app: JokeStreamApp, joke_id: str) -> None:
    """Print the joke with JOKE_ID."""

    async def run() -> Joke:
        async with app.service.client:
            return await app.service.get_joke_by_id(joke_id)

    _echo_joke(_run(run()))


@main.command()
@click.argument("text")
@click.pass_obj
def check(app: JokeStreamApp, text: str) -> None:
    """Run TEXT through the content filter."""
    result = app.service.engine.analyze(text)
    if result.is_clean:
        click.echo("clean")
        return
    click.echo(f"blocked: {', '.join(result.matched_categories)}")
    click.echo(result.censored_text)


@main.command()
@click.pass_obj
def stats(app: JokeStreamApp) -> None:
    """Show content filter statistics."""
    current = app.service.stats.get()
    if current is None:
        click.echo("No jokes checked yet.")
        return

    click.echo(f"Checked: {current.total_checked}")
    click.echo(f"Blocked: {current.total_blocked}")
    for category, count in sorted(current.blocked_by_category.items()):
        click.echo(f"  {category}: {count}")
    click.echo(f"Last checked: {current.last_checked.isoformat(timespec='seconds')}")


@main.command()
@click.option("--toggle", is_flag=True, help="Turn the filter on or off.")
@click.option("--strength", type=click.Choice([s.value for s in FilterStrength]))
@click.option("--block", "block_words", multiple=True, help="Add a word to the blocklist.")
@click.option("--unblock", "unblock_words", multiple=True, help="Remove a blocklisted word.")
@click.pass_obj
def settings(
    app: JokeStreamApp,
    toggle: bool,
    strength: str | None,
    block_words: tuple[str, ...],
    unblock_words: tuple[str, ...],
) -> None:
    """Show or change content filter settings."""
    store = app.service.settings_store
    if store is None:
        raise click.ClickException("Settings are not available")

    if toggle:
        store.toggle_filter()
    if strength:
        store.set_strength(strength)
    for word in block_words:
        try:
            store.add_to_blocklist(word)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--block") from e
    for word in unblock_words:
        store.remove_from_blocklist(word)
    if block_words or unblock_words:
        app.service.reload_filter()

    current = store.settings
    click.echo(f"Filter: {'on' if current.enabled else 'off'}")
    click.echo(f"Strength: {current.strength.value}")
    click.echo(f"Blocklist: {', '.join(current.custom_blocklist) or '(empty)'}")


if __name__ == "__main__":
    main()
