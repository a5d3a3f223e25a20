"""tickcodec CLI."""

import json
import logging
import sys
from datetime import date

import click

from tickcodec.config_loader import AppConfig, load_config_with_overrides
from tickcodec.constants import LOG_FORMAT, FeedMode


def _setup_logging(cfg: AppConfig) -> None:
    logging.basicConfig(level=cfg.environment.log_level.value, format=LOG_FORMAT)


def _load(config: str, feed_mode: str | None) -> AppConfig:
    cfg = load_config_with_overrides(config, feed_mode=feed_mode)
    _setup_logging(cfg)
    return cfg


def _subscription_or_exit(cfg: AppConfig, symbol: str):
    try:
        return cfg.get_subscription(symbol)
    except KeyError as e:
        click.echo(str(e.args[0]), err=True)
        sys.exit(2)


config_option = click.option(
    "--config",
    type=click.Path(exists=True),
    default="config/config.yaml",
    help="Path to configuration file",
)
feed_mode_option = click.option(
    "--feed-mode",
    type=click.Choice([m.value for m in FeedMode]),
    help="Override configured feed mode",
)
date_option = click.option(
    "--date",
    "day",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Trading date (defaults to today)",
)


@click.group()
def cli():
    """tickcodec Command Line Interface."""
    pass


@cli.command("resolve")
@config_option
@click.option("--symbol", required=True, help="Subscribed symbol")
@date_option
@feed_mode_option
def resolve_cmd(config, symbol, day, feed_mode):
    """Print the source archive path for a subscription day."""
    from tickcodec.data.source_resolver import resolve_subscription

    cfg = _load(config, feed_mode)
    sub = _subscription_or_exit(cfg, symbol)
    trading_day = day.date() if day else date.today()

    click.echo(resolve_subscription(sub, trading_day, cfg.environment.feed_mode, cfg.environment))


@cli.command("decode")
@config_option
@click.option("--symbol", required=True, help="Subscribed symbol")
@click.option(
    "--file", "path", type=click.Path(exists=True), required=True, help="Plain-text tick file"
)
@date_option
@feed_mode_option
@click.option("--workers", type=int, help="Override decoder thread count")
@click.option("--show-records", is_flag=True, help="Print decoded records as JSON lines")
def decode_cmd(config, symbol, path, day, feed_mode, workers, show_records):
    """Decode a local tick file and report failures."""
    from tickcodec.data.decoder import decode_lines
    from tickcodec.data.diagnostics import DiagnosticSink

    cfg = _load(config, feed_mode)
    sub = _subscription_or_exit(cfg, symbol)
    trading_day = day.date() if day else date.today()

    if cfg.is_live:
        click.echo("Live feed: no file-backed source, nothing to decode.")
        return

    with open(path, encoding="utf-8", errors="replace") as f:
        lines = f.read().splitlines()

    sink = DiagnosticSink(max_size=cfg.decoding.max_failures_retained)
    batch = decode_lines(
        lines,
        sub,
        trading_day,
        max_workers=workers or cfg.decoding.max_workers,
        sink=sink,
    )

    if show_records:
        for record in batch.records:
            click.echo(json.dumps(record.to_dict()))

    click.echo(batch.summary())
    for _, failure in batch.failures:
        click.echo(str(failure))

    if cfg.decoding.strict and not batch.ok:
        sys.exit(1)


if __name__ == "__main__":
    cli()

main = cli
