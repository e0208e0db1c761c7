"""Wire the client, pipeline and renderer together for one card."""

from __future__ import annotations

import asyncio
import logging

from rich.console import Console

from .errors import ContributorStatsError, UnknownLocaleError
from .github.client import GitHubClient
from .github.contributors import ContributorFetcher
from .models import CardOptions, StatsOptions
from .pipeline import StatsPipeline
from .renderer import AVAILABLE_LOCALES, render_error, render_stats_card

logger = logging.getLogger(__name__)


def _write_to_file(content: str, output_file: str) -> None:
    """Write content to a file and print confirmation."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)
    Console().print(f"Saved to {output_file}")


async def build_card(
    client: GitHubClient,
    username: str,
    options: StatsOptions,
    card_options: CardOptions,
    contributor_fetcher: ContributorFetcher | None = None,
) -> str:
    pipeline = StatsPipeline(client, contributor_fetcher)
    report = await pipeline.collect(username, options)
    images = await asyncio.gather(
        *(client.fetch_image_base64(entry.image_reference) for entry in report.entries)
    )
    logger.info("Rendering SVG for %d repositories", len(report.entries))
    return render_stats_card(
        report.display_name,
        report.entries,
        images,
        card_options,
        hide_contributor_rank=options.hide_contributor_rank,
    )


async def run(
    username: str,
    token: str | None,
    options: StatsOptions | None = None,
    card_options: CardOptions | None = None,
    output_file: str | None = None,
) -> str:
    """Render the stats card for *username*; failures become an error card."""
    options = options or StatsOptions()
    card_options = card_options or CardOptions()

    try:
        if card_options.locale and card_options.locale not in AVAILABLE_LOCALES:
            raise UnknownLocaleError(card_options.locale)
        async with GitHubClient(token) as client:
            fetcher = None if options.hide_contributor_rank else ContributorFetcher(client)
            svg = await build_card(client, username, options, card_options, fetcher)
            if fetcher is not None:
                logger.info("Total contributor API requests made: %d", fetcher.state.request_count)
    except ContributorStatsError as exc:
        logger.error("Failed to render stats for %s: %s", username, exc)
        svg = render_error(str(exc), exc.secondary_message)

    if output_file:
        _write_to_file(svg, output_file)
    return svg
