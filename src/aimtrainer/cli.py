"""CLI entry point for the aim trainer engine."""

import json
import logging
import sys
from pathlib import Path

import click


def _store(settings, player: str):
    from aimtrainer.state.profile_store import SqliteProfileStore

    return SqliteProfileStore(db_path=settings.get_data_dir() / "profiles.db", player_id=player)


def _controller(player: str):
    from aimtrainer.config.settings import Settings
    from aimtrainer.engine.controller import AdaptationController

    settings = Settings.load()
    return AdaptationController(settings=settings, store=_store(settings, player))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log engine decisions to stderr")
@click.option("--player", default="default", show_default=True, help="Profile to use")
@click.pass_context
def main(ctx: click.Context, verbose: bool, player: str) -> None:
    """Adaptive difficulty and flick pattern engine."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["player"] = player


@main.command()
@click.argument("family")
@click.option("--tier", default="silver", show_default=True)
@click.option("--count", "target_count", type=int, default=10, show_default=True)
@click.option("--focus-zone", default=None, help="Fix random targets to one zone")
@click.option("--seed", type=int, default=None, help="Seed for a reproducible layout")
@click.option("--stats", "stats_json", default=None, help="Adaptive stats as JSON")
def pattern(family: str, tier: str, target_count: int, focus_zone, seed, stats_json) -> None:
    """Generate a flick pattern and list its targets."""
    from aimtrainer.engine.clock import SeededRng
    from aimtrainer.engine.errors import PatternError
    from aimtrainer.engine.patterns import PatternGenerator

    generator = PatternGenerator(rng=SeededRng(seed))
    try:
        stats = json.loads(stats_json) if stats_json else None
        result = generator.generate(
            family, tier, target_count=target_count, focus_zone=focus_zone, stats=stats,
        )
    except (PatternError, json.JSONDecodeError) as e:
        raise click.ClickException(str(e))

    click.echo(f"{result.name} [{result.difficulty.value}] - {result.description}")
    start = result.targets[0].spawn_time if result.targets else 0
    for t in result.targets:
        click.echo(
            f"  +{t.spawn_time - start:7.0f}ms  {t.angle:6.1f}deg  {t.distance:5.1f}u  "
            f"{t.zone.value:<6}  diff {t.difficulty:2d}  rt {t.expected_reaction_time}ms"
        )


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--auto/--no-auto", default=True, help="Auto-apply recommendations")
@click.pass_context
def analyze(ctx: click.Context, path: Path, auto: bool) -> None:
    """Feed session records (JSON object or list) through the engine."""
    from aimtrainer.engine.errors import InvalidPerformanceError

    controller = _controller(ctx.obj["player"])
    controller.set_dynamic_mode(True)
    controller.set_auto_adjust(auto)

    data = json.loads(path.read_text())
    records = data if isinstance(data, list) else [data]
    for i, record in enumerate(records):
        try:
            rec = controller.analyze_performance(record)
        except InvalidPerformanceError as e:
            click.echo(f"  session {i}: skipped ({e})", err=True)
            continue
        click.echo(
            f"  session {i}: target {rec.target_difficulty:.1f} ({rec.adjustment_type.value}), "
            f"live {controller.current_difficulty:.1f}"
        )

    rec = controller.latest_recommendation
    if rec is not None:
        click.echo(f"Recommended modes: {', '.join(rec.recommended_modes)}")
        if rec.focus_areas:
            click.echo(f"Focus areas: {', '.join(rec.focus_areas)}")


@main.group()
def profile() -> None:
    """Inspect or reset the stored skill profile."""


@profile.command("show")
@click.pass_context
def profile_show(ctx: click.Context) -> None:
    controller = _controller(ctx.obj["player"])
    for key, value in controller.profile.to_dict().items():
        click.echo(f"  {key}: {value:.1f}" if isinstance(value, float) else f"  {key}: {value}")


@profile.command("reset")
@click.confirmation_option(prompt="Reset the skill profile?")
@click.pass_context
def profile_reset(ctx: click.Context) -> None:
    controller = _controller(ctx.obj["player"])
    controller.reset_profile()
    click.echo("Profile reset.")


@profile.command("list")
@click.pass_context
def profile_list(ctx: click.Context) -> None:
    """List players with a stored profile."""
    from aimtrainer.config.settings import Settings

    players = _store(Settings.load(), ctx.obj["player"]).list_players()
    if not players:
        click.echo("No stored profiles.")
        return
    for player in players:
        click.echo(f"  {player}")


@profile.command("delete")
@click.confirmation_option(prompt="Delete the stored skill profile?")
@click.pass_context
def profile_delete(ctx: click.Context) -> None:
    """Remove the player's stored profile entirely."""
    from aimtrainer.config.settings import Settings

    _store(Settings.load(), ctx.obj["player"]).delete()
    click.echo(f"Deleted profile for {ctx.obj['player']}.")


@main.command()
def serve() -> None:
    """Run the JSON-lines server on stdin/stdout."""
    import asyncio

    from aimtrainer.server.__main__ import main as server_main

    asyncio.run(server_main())
