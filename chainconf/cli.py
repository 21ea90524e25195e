#!/usr/bin/env python3
"""
chainconf CLI

Inspect the effective node configuration and the values derived from it.

Usage:
    chainconf [--config FILE] [--set KEY=VALUE ...] dump
    chainconf get <key>
    chainconf node-id
    chainconf peers
    chainconf network [--block N]
    chainconf ips
"""

import json
from pathlib import Path
from typing import Optional, Tuple

import click

from .config.properties import SystemProperties
from .config.sources import parse_toml_file
from .exceptions import ChainConfError


def parse_assignments(assignments: Tuple[str, ...]) -> list:
    """Turn ``("a.b=1", "c=2")`` into ``["a.b", "1", "c", "2"]``."""
    pairs = []
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint="--set")
        pairs.extend([key.strip(), value])
    return pairs


@click.group()
@click.version_option(package_name="chainconf", prog_name="chainconf")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="TOML file used as the API config layer.")
@click.option("--set", "assignments", multiple=True, metavar="KEY=VALUE",
              help="Override a setting; may be repeated.")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[Path], assignments: Tuple[str, ...]):
    """Layered blockchain node configuration."""
    pairs = parse_assignments(assignments)
    try:
        api_config = parse_toml_file(config_file) if config_file else None
        props = SystemProperties(api_config)
        if pairs:
            props.override_params(pairs)
    except ChainConfError as e:
        raise click.ClickException(str(e))
    ctx.obj = props


@cli.command()
@click.pass_obj
def dump(props: SystemProperties):
    """Print the merged configuration as JSON."""
    click.echo(props.dump())


@cli.command()
@click.argument("key")
@click.pass_obj
def get(props: SystemProperties, key: str):
    """Print the effective value of KEY and the layer it comes from."""
    if not props.config.has_path(key):
        raise click.ClickException(f"No configuration setting found for key '{key}'")
    value = props.config.lookup(key)
    click.echo(json.dumps(value, default=str) if not isinstance(value, str) else value)
    click.echo(f"  from {props.config.origin(key)}", err=True)


@cli.command("node-id")
@click.pass_obj
def node_id(props: SystemProperties):
    """Resolve (or generate) the node key and print the node id."""
    try:
        click.echo(props.node_id().hex())
    except ChainConfError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.pass_obj
def peers(props: SystemProperties):
    """List active peers and the number of trusted-peer patterns."""
    active = props.peer_active()
    trusted = props.peer_trusted()
    if not active:
        click.echo("No active peers configured")
    for peer in active:
        click.echo(str(peer))
    click.echo(f"Trusted peer patterns: {len(trusted)}")


@cli.command()
@click.option("--block", type=int, default=None, help="Show the fork active at this block.")
@click.pass_obj
def network(props: SystemProperties, block: Optional[int]):
    """Print the selected network config and its fork schedule."""
    try:
        network_config = props.get_blockchain_config()
    except ChainConfError as e:
        raise click.ClickException(str(e))
    click.echo(f"Network: {network_config.name or type(network_config).__name__}")
    for start, fork in network_config.schedule():
        click.echo(f"  {start:>10}  {fork.name}")
    if block is not None:
        click.echo(f"Block {block}: {network_config.get_config_for_block(block).name}")


@cli.command()
@click.pass_obj
def ips(props: SystemProperties):
    """Print bind and external IP (may probe the network)."""
    click.echo(f"bind:     {props.bind_ip()}")
    click.echo(f"external: {props.external_ip()}")


def main():
    cli()


if __name__ == "__main__":
    main()
