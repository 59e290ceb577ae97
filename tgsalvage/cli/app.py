"""CLI commands - thin layer, delegates to the scanner."""
import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from telethon.errors import RPCError

from .display import Display
from ..config import Config, ScanOptions, parse_channel, parse_log_level, MAX_PAGE_SIZE
from ..errors import ConfigError, SalvageError
from ..log import setup_logging, teardown_logging
from ..scanner import Scanner, ScanCallbacks, ScanStats
from ..telegram import TelegramClient, TelegramSession

log = logging.getLogger(__name__)

app = typer.Typer(help="Back up media from deleted messages of a Telegram channel")
console = Console()


@app.callback()
def setup(
    ctx: typer.Context,
    log_level: str = typer.Option(None, "--log-level", help="DEBUG/INFO/WARNING/ERROR"),
):
    """Load .env/environment config and set up logging."""
    try:
        config = Config.from_env()
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    if log_level:
        config.log_level = log_level
    setup_logging(parse_log_level(config.log_level))
    ctx.obj = config


@app.command()
def login(
    api_id: int = typer.Option(..., "--api-id", "-i", envvar="API_ID"),
    api_hash: str = typer.Option(..., "--api-hash", "-h", envvar="API_HASH"),
    phone: str = typer.Option(..., "--phone", "-p"),
):
    """Login to Telegram."""
    async def do_login():
        session = TelegramSession()
        session.save_credentials(api_id, api_hash)

        client = TelegramClient(api_id, api_hash)
        code_cb = lambda: typer.prompt("Code")
        pass_cb = lambda: typer.prompt("2FA Password", hide_input=True)

        try:
            if await client.login(phone, code_cb, pass_cb):
                console.print("[green]✓ Logged in[/green]")
            else:
                console.print("[red]Login failed[/red]")
        finally:
            await client.close()

    asyncio.run(do_login())


@app.command()
def logout(ctx: typer.Context):
    """Logout and delete session."""
    config = TelegramSession().fill_credentials(ctx.obj)

    async def do_logout():
        client = TelegramClient(config.api_id, config.api_hash)
        if await client.start():
            await client.logout()
        await client.close()

    if config.api_id and config.api_hash and TelegramSession().exists():
        asyncio.run(do_logout())
    TelegramSession().delete()
    console.print("[green]✓ Logged out[/green]")


@app.command()
def status():
    """Check login status."""
    session = TelegramSession()
    if session.exists():
        console.print("[green]✓ Logged in[/green]")
    else:
        console.print("[yellow]Not logged in[/yellow]")


@app.command()
def backup(
    ctx: typer.Context,
    channel: str = typer.Argument(None, help="Channel id or @username (default: CHANNEL_ID). Put -100 ids after --"),
    dest: Path = typer.Option(None, "-d", "--dir", help="Backup directory (default: BACKUP_DIR)"),
    limit: int = typer.Option(
        0, "-l", "--limit", help="Stop after this many media messages, before the end of the log (0: scan all)"
    ),
    page_size: int = typer.Option(MAX_PAGE_SIZE, "--page-size", min=1, max=MAX_PAGE_SIZE),
    dry_run: bool = typer.Option(False, "--dry-run", help="Resolve paths, download and create nothing"),
):
    """Save media from deleted messages found in the channel's admin log."""
    config: Config = TelegramSession().fill_credentials(ctx.obj)
    target = parse_channel(channel) if channel else config.channel
    if target is None:
        console.print("[red]No channel given. Pass one or set CHANNEL_ID.[/red]")
        raise typer.Exit(1)

    options = ScanOptions(
        base_dir=dest or Path(config.backup_dir),
        page_size=page_size,
        limit=limit or None,
        dry_run=dry_run,
    )

    try:
        config.require_credentials()
        stats = asyncio.run(run_backup(config, target, options))
    except (SalvageError, RPCError) as e:
        log.debug("Backup aborted", exc_info=True)
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        raise typer.Exit(130)

    console.print(f"\n[cyan]Done:[/cyan] {summary(stats, dry_run)}")


async def run_backup(config: Config, channel: int | str, options: ScanOptions) -> ScanStats:
    """Connect, resolve the channel and scan its deletion log."""
    tg = TelegramClient(config.api_id, config.api_hash)
    try:
        if not await tg.start():
            raise SalvageError("Not logged in. Run: tgsalvage login")
        input_channel = await tg.get_channel(channel)

        console.print(f"[cyan]Channel:[/cyan] {channel}")
        console.print(f"[cyan]Dest:[/cyan] {options.base_dir}")

        display = Display()
        callbacks = ScanCallbacks(
            on_page=display.page,
            on_start=lambda r, d: display.start_download(d.leaf, r.size),
            on_saved=display.saved,
            on_skip=display.skip,
            on_error=display.error,
            on_progress=display.update_download,
        )
        scanner = Scanner(tg, input_channel, options, callbacks=callbacks)

        with Live(display, refresh_per_second=2, console=console):
            return await scanner.run()
    finally:
        await tg.close()


def summary(stats: ScanStats, dry_run: bool = False) -> str:
    saved = f"{stats.planned} to download" if dry_run else f"{stats.saved} saved"
    return (
        f"{saved}, {stats.existing} already present, "
        f"{stats.unsupported} unsupported, {stats.failed} failed "
        f"({stats.deletions} deletions in {stats.events} events)"
    )


def main():
    try:
        app()
    finally:
        teardown_logging()


if __name__ == "__main__":
    main()
