import asyncio
import re
import sys
from pathlib import Path

import click
from rich.console import Console

from loggregate import __version__
from loggregate.api.scan import run_scan
from loggregate.core.config import FeedConfig, ScanConfig
from loggregate.core.throttle import DEFAULT_LOG_INTERVAL, DEFAULT_SNAPSHOT_INTERVAL
from loggregate.diagnostics import LoggingDiagnostics
from loggregate.display import ConsoleDisplay, RichDisplay
from loggregate.exceptions import FeedError, SetupError
from loggregate.logging_config import get_logger, setup_logging
from loggregate.networks import DEFAULT_CACHE_PATH, NetworkDirectory

console = Console()
logger = get_logger("cli")

_ADDRESS = re.compile(r"^0x[a-fA-F0-9]{40}$")

USAGE_EXAMPLES = [
    (
        'loggregate scan -e "Transfer(address indexed from, address indexed to, uint256 value)" -p value -n arbitrum',
        "Monitor transfer amounts on Arbitrum",
    ),
    (
        'loggregate scan -e "Swap(address,uint256,uint256,uint256,address,bytes32)" -p 1 -n optimism',
        "Monitor swap amounts on Optimism (second parameter)",
    ),
    (
        'loggregate scan -e "Transfer(address,address,uint256)" -p 2 -c 0x1234... -n eth',
        "Monitor transfers from a specific contract",
    ),
    (
        'loggregate scan -e "Transfer(address,address,uint256)" -p 2 -b 1000000 -d 18 -n eth',
        "Start at block 1,000,000 and show amounts in whole tokens",
    ),
]


def _validate_contract(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    if value is not None and not _ADDRESS.match(value):
        raise click.BadParameter("expected 0x followed by 40 hex characters")
    return value


def _load_networks(cache: Path, refresh: bool) -> NetworkDirectory:
    directory = NetworkDirectory.load(cache)
    if refresh:
        console.print("[blue]Refreshing networks from API...[/]")
    asyncio.run(directory.refresh(force=refresh))
    if refresh:
        console.print("[green]Networks refreshed successfully![/]")
    return directory


@click.group()
@click.version_option(__version__, prog_name="loggregate")
def cli() -> None:
    """Live statistics over blockchain event parameters."""


@cli.command("networks")
@click.option("--refresh", is_flag=True, help="Force refresh network list from API")
@click.option("--cache", type=click.Path(path_type=Path), default=DEFAULT_CACHE_PATH, show_default=True)
def networks_cmd(refresh: bool, cache: Path) -> None:
    """List all available networks."""
    directory = _load_networks(cache, refresh)
    groups = directory.categorize()

    console.print("\n[bold blue]Available Networks:[/]")
    for header, key in (("Popular Mainnets", "mainnets"), ("Testnets", "testnets"), ("Other Networks", "others")):
        console.print(f"\n[yellow]{header}:[/]")
        for name, url in groups[key]:
            console.print(f"[green]{name}[/]: {url}")
    console.print(f"\n[yellow]Total {len(directory)} networks available[/]")

    console.print("\n[blue]Usage Examples:[/]")
    for cmd, what in USAGE_EXAMPLES:
        console.print(f"[yellow]{cmd}[/] - {what}", highlight=False)
    console.print()


@cli.command("scan")
@click.option("-e", "--event", "events", multiple=True, required=True, help="Event signature; repeat to track several")
@click.option("-p", "--param", required=True, help="Parameter to track: name or 0-based index (must be an integer type)")
@click.option("-c", "--contract", callback=_validate_contract, default=None, help="Emitter contract address")
@click.option("-n", "--network", default="eth", show_default=True, help="Network to connect to")
@click.option("--url", default=None, help="Explicit feed endpoint (overrides --network)")
@click.option("--rpc", "use_rpc", is_flag=True, help="Treat --url as a JSON-RPC node and page eth_getLogs")
@click.option("--step", type=click.IntRange(min=1), default=5_000, show_default=True, help="Blocks per eth_getLogs call (--rpc)")
@click.option("-d", "--decimals", type=click.IntRange(min=0), default=0, show_default=True, help="Decimals to divide values by (e.g. 18 for wei to ETH)")
@click.option("--precision", type=click.IntRange(min=0), default=2, show_default=True, help="Fractional digits shown")
@click.option("-b", "--from-block", type=click.IntRange(min=0), default=0, show_default=True, help="Starting block number")
@click.option("--to-block", type=click.IntRange(min=0), default=None, help="End block (exclusive); defaults to the height at start")
@click.option("-t", "--title", default="Blockchain Event Scanner", show_default=True, help="Custom title for the scanner")
@click.option("--snapshot-interval", type=click.IntRange(min=1), default=DEFAULT_SNAPSHOT_INTERVAL, show_default=True)
@click.option("--log-interval", type=click.IntRange(min=1), default=DEFAULT_LOG_INTERVAL, show_default=True)
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=120.0, show_default=True, help="Seconds to wait for one batch")
@click.option("--bearer-token", envvar="HYPERSYNC_BEARER_TOKEN", default=None, help="HyperSync API token")
@click.option("--plain", is_flag=True, help="Plain console output instead of the live dashboard")
@click.option("-v", "--verbose", is_flag=True, help="Show additional info and debug logs")
@click.option("-q", "--quiet", is_flag=True, help="Only log errors")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write logs to this file")
@click.option("--refresh-networks", is_flag=True, help="Force refresh network list from API")
@click.option("--cache", type=click.Path(path_type=Path), default=DEFAULT_CACHE_PATH, show_default=True)
def scan_cmd(
    events: tuple[str, ...],
    param: str,
    contract: str | None,
    network: str,
    url: str | None,
    use_rpc: bool,
    step: int,
    decimals: int,
    precision: int,
    from_block: int,
    to_block: int | None,
    title: str,
    snapshot_interval: int,
    log_interval: int,
    timeout: float,
    bearer_token: str | None,
    plain: bool,
    verbose: bool,
    quiet: bool,
    log_file: str | None,
    refresh_networks: bool,
    cache: Path,
) -> None:
    """Scan an event parameter from FROM_BLOCK to the chain tip with a live dashboard."""
    if use_rpc and not url:
        raise click.UsageError("--rpc requires --url")
    if to_block is not None and to_block <= from_block:
        raise click.BadParameter("must be greater than --from-block", param_hint="--to-block")

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file, console=console)

    if url is None:
        directory = _load_networks(cache, refresh_networks)
        try:
            url = directory.url_for(network)
        except SetupError as e:
            raise click.ClickException(f"{e}\nRun 'loggregate networks' to see all available networks.") from e

    config = ScanConfig(
        signatures=events,
        parameter=param,
        from_block=from_block,
        to_block=to_block,
        contract=contract,
        decimals=decimals,
        display_precision=precision,
        snapshot_interval=snapshot_interval,
        log_interval=log_interval,
        batch_timeout_s=timeout,
        title=f"{title} ({'rpc' if use_rpc else network})",
    )
    feed_config = FeedConfig(url=url, bearer_token=bearer_token, step=step)

    if verbose:
        console.print("[blue]Using event signature(s):[/]")
        for sig in events:
            console.print(f"- {sig}", markup=False)
        console.print(f"[blue]Tracking parameter:[/] {param}")
        if contract:
            console.print(f"[blue]Monitoring contract:[/] {contract}")
        console.print(f"[blue]Starting scanner on {network}:[/] {url}")

    interactive = console.is_terminal and not plain
    display = (
        RichDisplay(config.title, parameter_label=str(param), console=console)
        if interactive
        else ConsoleDisplay(config.title, console=console)
    )

    try:
        with display:
            result = asyncio.run(
                run_scan(
                    config=config,
                    feed_config=feed_config,
                    display=display,
                    diagnostics=LoggingDiagnostics(),
                    use_rpc=use_rpc,
                )
            )
    except KeyboardInterrupt:
        logger.debug("interrupted before signal handlers were installed")
        sys.exit(130)
    except SetupError as e:
        raise click.ClickException(f"setup failed: {e}") from e
    except FeedError as e:
        raise click.ClickException(
            f"scan aborted at block {e.last_position}: {e}\n"
            f"Resume with --from-block {e.last_position}."
        ) from e

    logger.debug("scan %s after %d batches at block %d", result.state.value, result.batches, result.last_position)
    if result.cancelled:
        sys.exit(130)


if __name__ == "__main__":
    cli()
