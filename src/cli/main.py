"""
CLI entry point: fifo-pnl report | check.

Every command loads config from --config (default config.yaml).
`report` fetches the trade history for one pair, prints the ordered
trades and the FIFO statistics, and optionally writes a CSV listing.
"""

import logging
import sys
from datetime import datetime, timezone

import click
from dotenv import load_dotenv

from config import load_config

load_dotenv()

logger = logging.getLogger("pnl")

DATE_FORMATS = ["%Y-%m-%d"]


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _day_start(day: datetime | None) -> float | None:
    if day is None:
        return None
    return day.replace(hour=0, minute=0, second=0, tzinfo=timezone.utc).timestamp()


def _day_end(day: datetime | None) -> float | None:
    if day is None:
        return None
    return day.replace(hour=23, minute=59, second=59, tzinfo=timezone.utc).timestamp()


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """fifo-pnl: FIFO realized/unrealized PnL from Kraken trade history."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- fifo-pnl report ----------


@cli.command()
@click.option("--symbol", required=True, help="Trading pair symbol as reported by Kraken (e.g. XXBTZEUR).")
@click.option("--tier", required=True, help="API rate tier (starter, intermediate, pro).")
@click.option("--start", "start_day", type=click.DateTime(DATE_FORMATS), default=None, help="Start date, inclusive (e.g. 2023-01-01).")
@click.option("--end", "end_day", type=click.DateTime(DATE_FORMATS), default=None, help="End date, inclusive (e.g. 2023-12-31).")
@click.option("--userref", type=int, default=None, help="Only trades of orders carrying this user reference.")
@click.option("--year", type=int, default=None, help="Only count sells from this calendar year (UTC) in realized PnL.")
@click.option("--csv", "write_csv", is_flag=True, default=False, help="Also write the trade listing as CSV.")
@click.option("--csv-path", default=None, help="CSV output path. Defaults to report.csv_path from config.")
@click.pass_context
def report(
    ctx: click.Context,
    symbol: str,
    tier: str,
    start_day: datetime | None,
    end_day: datetime | None,
    userref: int | None,
    year: int | None,
    write_csv: bool,
    csv_path: str | None,
) -> None:
    """Fetch trades for SYMBOL and compute FIFO PnL.

    Fetch errors abort the run with exit code 1; no partial report is printed.
    """
    cfg = load_config(ctx.obj["config_path"])
    from cli.output import format_statistics, format_trade_listing, write_trades_csv
    from cli.structured_log import StructuredEventLogger
    from fifo_core import compute_fifo_pnl
    from ledger import LedgerError, LedgerQuery, fetch_trades, get_kraken_client

    try:
        delay = cfg.delay_for_tier(tier)
    except KeyError:
        raise click.BadParameter(
            f"unknown tier {tier!r}; choose from {', '.join(cfg.rate_tiers)}", param_hint="'--tier'"
        )
    start = _day_start(start_day)
    end = _day_end(end_day)
    if start is not None and end is not None and start > end:
        raise click.BadParameter("start date is after end date", param_hint="'--start'")

    events = StructuredEventLogger(
        symbol,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )

    try:
        client = get_kraken_client(
            cfg.ledger.api_key,
            cfg.ledger.api_secret,
            base_url=cfg.ledger.base_url,
            timeout_s=cfg.ledger.timeout_s,
        )
    except ValueError as exc:
        events.error("configuration", str(exc))
        raise click.ClickException(str(exc))

    events.run_start(tier, userref, year)
    query = LedgerQuery(userref=userref, start=start, end=end)
    try:
        trades = fetch_trades(
            client,
            symbol,
            query,
            page_size=cfg.ledger.page_size,
            inter_page_delay=delay,
        )
    except LedgerError as exc:
        events.error("fetch failed", str(exc))
        raise click.ClickException(f"Error fetching trades: {exc}")
    events.fetch_complete(len(trades))

    click.echo(format_trade_listing(trades))
    stats = compute_fifo_pnl(trades, year=year)
    click.echo(format_statistics(stats))

    if write_csv:
        out = write_trades_csv(trades, csv_path or cfg.report.csv_path)
        click.echo(f"Wrote {len(trades)} trades to {out}")

    events.run_complete(stats.realized_pnl, stats.unrealized_pnl, stats.balance, len(trades))


# ---------- fifo-pnl check ----------


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check config and credentials without touching the network.

    Exit code 0 = ready, 1 = not ready.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded (page_size={cfg.ledger.page_size}, {cfg.ledger.base_url})"))
    except (OSError, ValueError) as e:
        checks.append(("config", False, str(e)))
        _print_checks(checks)
        raise SystemExit(1)

    if cfg.ledger.has_credentials:
        checks.append(("credentials", True, "KRAKEN_API_KEY and KRAKEN_SECRET_KEY set"))
    else:
        checks.append(("credentials", False, "set KRAKEN_API_KEY and KRAKEN_SECRET_KEY"))

    tiers = ", ".join(f"{name}={delay}s" for name, delay in cfg.rate_tiers.items())
    checks.append(("rate_tiers", True, tiers))

    _print_checks(checks)
    ready = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if ready else 1)


def _print_checks(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    ready = all(ok for _, ok, _ in checks)
    click.echo(f"\nStatus: {'READY' if ready else 'NOT READY'}")


if __name__ == "__main__":
    cli()
