"""Command-line interface for kickchat."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from kickchat import __version__
from kickchat.chat import KickChatClient, KickChatError
from kickchat.config import load_channels, load_config
from kickchat.models import ChatEvent
from kickchat.watcher import JsonlSink, Watcher

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _print_event(event: ChatEvent) -> None:
    click.echo(f"[{event.channel}] {event.username}: {event.text}")


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """kickchat - Kick chatroom lookup and realtime chat feed."""
    _configure_logging(verbose)


@cli.command()
@click.argument("channel")
@click.option(
    "--config",
    type=click.Path(path_type=Path),
    default="config.yaml",
    help="Path to config YAML file",
)
def resolve(channel: str, config: Path):
    """Print the chatroom ID of CHANNEL."""
    cfg = load_config(config)
    client = KickChatClient(cfg)

    try:
        room_id = asyncio.run(client.resolve(channel))
    except KickChatError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(str(room_id))


@cli.command()
@click.argument("channels", nargs=-1)
@click.option(
    "--channels",
    "channels_file",
    type=click.Path(exists=True, path_type=Path),
    help="Path to channels YAML file",
)
@click.option(
    "--config",
    type=click.Path(path_type=Path),
    default="config.yaml",
    help="Path to config YAML file",
)
@click.option(
    "--jsonl",
    type=click.Path(path_type=Path),
    help="Append messages to this JSON Lines file instead of printing them",
)
def watch(channels: tuple, channels_file: Optional[Path], config: Path, jsonl: Optional[Path]):
    """Stream chat messages from one or more channels."""
    channel_names = list(channels)
    if channels_file is not None:
        channel_names.extend(load_channels(channels_file))

    if not channel_names:
        logger.error("No channels given. Pass channel names or --channels FILE")
        sys.exit(1)

    cfg = load_config(config)
    sink = JsonlSink(jsonl) if jsonl else _print_event
    watcher = Watcher(channel_names=channel_names, config=cfg, sink=sink)

    logger.info(f"Watching {len(channel_names)} channels: {channel_names}")

    try:
        asyncio.run(watcher.start())
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, stopping watcher")

    logger.info(f"Received {watcher.event_count} messages")


if __name__ == "__main__":
    cli()
