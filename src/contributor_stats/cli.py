"""Command line entry point."""

from __future__ import annotations

import asyncio
import logging

import click
from rich.logging import RichHandler

from . import __version__
from .models import CardOptions, OrderBy, Rank, StatsOptions
from .orchestrator import run

logger = logging.getLogger(__name__)

_RANK_LABELS = [rank.value for rank in Rank]


def _parse_array(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_ranks(ctx, param, value: str | None) -> frozenset[Rank]:
    ranks = set()
    for label in _parse_array(value):
        if label.upper() not in _RANK_LABELS:
            raise click.BadParameter(
                f"unknown rank {label!r}, expected one of {', '.join(_RANK_LABELS)}"
            )
        ranks.add(Rank(label.upper()))
    return frozenset(ranks)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


@click.command()
@click.argument("username")
@click.option("--token", envvar="GITHUB_TOKEN", required=True, help="GitHub token (or GITHUB_TOKEN).")
@click.option(
    "--output", "-o", "output_file", default="github-contributor-stats.svg", show_default=True,
    help="Where to write the SVG card.",
)
@click.option("--hide", callback=_parse_ranks, help="Comma separated star ranks to hide, e.g. 'B,B+'.")
@click.option(
    "--order-by", type=click.Choice([o.value for o in OrderBy]), default=OrderBy.STARS.value,
    show_default=True,
)
@click.option("--limit", type=int, default=-1, show_default=True, help="Max repositories; <= 0 for all.")
@click.option(
    "--hide-contributor-rank/--show-contributor-rank", default=True, show_default=True,
    help="Contribution rank needs one contributors request per repository.",
)
@click.option(
    "--combine-all-yearly-contributions/--recent-only", default=True, show_default=True,
    help="Aggregate every contribution year instead of one recent-repositories query.",
)
@click.option("--theme", default="default", show_default=True)
@click.option("--title-color")
@click.option("--text-color")
@click.option("--icon-color")
@click.option("--bg-color", help="Hex colour or gradient 'angle,hex1,hex2'.")
@click.option("--border-color")
@click.option("--border-radius", type=float, default=4.5, show_default=True)
@click.option("--hide-title", is_flag=True)
@click.option("--hide-border", is_flag=True)
@click.option("--custom-title")
@click.option("--locale")
@click.option("--line-height", type=int, default=25, show_default=True)
@click.option("--disable-animations", is_flag=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__)
def main(
    username: str,
    token: str,
    output_file: str,
    hide: frozenset[Rank],
    order_by: str,
    limit: int,
    hide_contributor_rank: bool,
    combine_all_yearly_contributions: bool,
    theme: str,
    title_color: str | None,
    text_color: str | None,
    icon_color: str | None,
    bg_color: str | None,
    border_color: str | None,
    border_radius: float,
    hide_title: bool,
    hide_border: bool,
    custom_title: str | None,
    locale: str | None,
    line_height: int,
    disable_animations: bool,
    verbose: bool,
) -> None:
    """Render a contributor stats card for USERNAME."""
    _configure_logging(verbose)

    options = StatsOptions(
        hide_contributor_rank=hide_contributor_rank,
        order_by=OrderBy(order_by),
        limit=limit,
        hide=hide,
        combine_all_yearly_contributions=combine_all_yearly_contributions,
    )
    card_options = CardOptions(
        hide_title=hide_title,
        hide_border=hide_border,
        line_height=line_height,
        title_color=title_color,
        icon_color=icon_color,
        text_color=text_color,
        bg_color=bg_color,
        border_color=border_color,
        border_radius=border_radius,
        custom_title=custom_title,
        theme=theme,
        locale=locale.lower() if locale else None,
        disable_animations=disable_animations,
    )

    logger.info("Generating stats for user: %s", username)
    logger.info("Combine all yearly contributions: %s", combine_all_yearly_contributions)
    logger.info("Hide contributor rank: %s", hide_contributor_rank)

    asyncio.run(
        run(
            username=username,
            token=token,
            options=options,
            card_options=card_options,
            output_file=output_file,
        )
    )
