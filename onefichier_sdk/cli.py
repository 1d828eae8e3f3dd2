"""
Command-line interface for the 1fichier SDK.

This module provides the ``fichier`` command for uploading files and managing
remote folders from the command line.
"""

import asyncio
import json
import logging
import os
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Dict

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .async_client import AsyncFichierClient
from .exceptions import CredentialError
from .utils import format_file_size


# Initialize Rich console
console = Console()


class CLIContext:
    """CLI context object to share state between commands."""

    def __init__(self):
        self.config: Dict[str, Any] = {}
        self.config_file = Path.home() / ".onefichier" / "config.json"

    def load_config(self):
        """Load configuration from file."""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    self.config = json.load(f)
            except (json.JSONDecodeError, IOError):
                self.config = {}

    def save_config(self):
        """Save configuration to file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            json.dump(self.config, f, indent=2)
        self.config_file.chmod(0o600)

    def get_client(self, require_key: bool = True) -> AsyncFichierClient:
        """Create a client from the saved configuration and environment."""
        api_key = self.config.get('api_key') or os.getenv('ONEFICHIER_API_KEY')
        proxy = self.config.get('proxy') or os.getenv('ONEFICHIER_PROXY')

        if require_key and not api_key:
            raise CredentialError("API key not configured. Use 'fichier config' or set ONEFICHIER_API_KEY environment variable.")

        return AsyncFichierClient(api_key=api_key, proxy=proxy)


# Create CLI context
cli_context = CLIContext()


def run(coro_factory, require_key: bool = True):
    """Run ``coro_factory(client)`` on a fresh client and close it afterwards."""

    async def _main():
        client = cli_context.get_client(require_key=require_key)
        async with client:
            return await coro_factory(client)

    return asyncio.run(_main())


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """1fichier CLI - upload files and manage remote folders."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    # Load configuration
    cli_context.load_config()

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )
        console.print("[dim]Debug mode enabled[/dim]")


@cli.command()
@click.option('--api-key', prompt=True, hide_input=True, help='API key for authentication')
@click.option('--proxy', help='Proxy URL for every request')
def config(api_key, proxy):
    """Save the API key and proxy settings."""

    cli_context.config['api_key'] = api_key
    if proxy:
        cli_context.config['proxy'] = proxy
    else:
        cli_context.config.pop('proxy', None)

    cli_context.save_config()
    console.print("✅ Configuration saved successfully!")


@cli.command()
@click.argument('files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--folder', '-f', default='/', help='Remote folder path, created if missing')
@click.option('--domain', default=0, type=int, help='Target domain id (0 for 1fichier.com)')
def upload(files, folder, domain):
    """Upload files to a remote folder."""

    paths = [Path(file_path) for file_path in files]
    names = [path.name for path in paths]
    if len(set(names)) != len(names):
        console.print("❌ Files to upload must have distinct names")
        sys.exit(1)

    async def _upload(client: AsyncFichierClient):
        folder_id = await client.make_path(folder) if client.api_key else 0
        with ExitStack() as stack:
            streams = {path.name: stack.enter_context(open(path, 'rb')) for path in paths}
            return await client.upload_files(streams, folder_id=folder_id, domain=domain)

    try:
        with console.status(f"Uploading {len(paths)} file(s)..."):
            results = run(_upload, require_key=False)

        table = Table(title="Uploaded Files")
        table.add_column("Name", style="green")
        table.add_column("Size", style="yellow")
        table.add_column("Download Link", style="cyan")
        table.add_column("Remove Link", style="red")

        for result in results:
            table.add_row(result.file_name, result.file_size, result.download_link, result.remove_link)

        console.print(table)

    except Exception as e:
        console.print(f"❌ Upload failed: {e}")
        sys.exit(1)


@cli.command(name='ls')
@click.argument('path', default='/')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
def list_folder(path, output_json):
    """List a remote folder."""

    async def _list(client: AsyncFichierClient):
        folder_id = await client.get_folder_id(path)
        return await client.list_folder(folder_id, list_files=True)

    try:
        info = run(_list)

        if output_json:
            data = {
                "folder_id": info.id,
                "name": info.name,
                "sub_folders": [{"id": sub.id, "name": sub.name} for sub in info.sub_folders],
                "files": [{"filename": item.filename, "size": item.size, "url": item.url} for item in info.items],
            }
            console.print(json.dumps(data, indent=2))
            return

        table = Table(title=f"{path} (id {info.id})")
        table.add_column("Type", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Size", style="yellow")
        table.add_column("Link / ID", style="magenta")

        for sub in info.sub_folders:
            table.add_row("dir", sub.name, "", str(sub.id))
        for item in info.items:
            table.add_row("file", item.filename, format_file_size(item.size), item.url)

        console.print(table)

    except Exception as e:
        console.print(f"❌ Failed to list folder: {e}")
        sys.exit(1)


@cli.command()
@click.argument('path')
def mkdir(path):
    """Create a remote folder path, including missing parents."""
    try:
        folder_id = run(lambda client: client.make_path(path))
        console.print(f"✅ Folder ready: {path} (ID: {folder_id})")
    except Exception as e:
        console.print(f"❌ Failed to create folder: {e}")
        sys.exit(1)


@cli.command()
@click.argument('path')
@click.option('--recursive', '-r', is_flag=True, help='Remove sub-folders and files too')
@click.option('--wait', is_flag=True, help='Wait until deleted files disappear before removing folders')
@click.confirmation_option(prompt='Are you sure you want to remove this folder?')
def rmdir(path, recursive, wait):
    """Remove a remote folder."""

    async def _remove(client: AsyncFichierClient):
        folder_id = await client.get_folder_id(path)
        if folder_id == 0:
            raise click.UsageError("Refusing to remove the root folder")
        await client.remove_folder(folder_id, recursive=recursive, wait_for_consistency=wait)

    try:
        run(_remove)
        console.print(f"✅ Removed: {path}")
    except Exception as e:
        console.print(f"❌ Failed to remove folder: {e}")
        sys.exit(1)


@cli.command()
@click.argument('urls', nargs=-1, required=True)
@click.confirmation_option(prompt='Are you sure you want to delete these files?')
def rm(urls):
    """Delete files by download link."""
    try:
        removed = run(lambda client: client.remove_files(urls))
        console.print(f"✅ Removed {removed} file(s)")
    except Exception as e:
        console.print(f"❌ Delete failed: {e}")
        sys.exit(1)


@cli.command()
@click.argument('url')
@click.option('--password', help='File password')
@click.option('--cdn', is_flag=True, help='Serve through the CDN')
@click.option('--attachment', is_flag=True, help='Force download instead of inline display')
def link(url, password, cdn, attachment):
    """Create a temporary download link for a file."""
    try:
        token_url = run(lambda client: client.get_download_link(
            url,
            password=password,
            cdn=cdn,
            inline=not attachment,
        ))
        console.print(token_url)
    except Exception as e:
        console.print(f"❌ Failed to create download link: {e}")
        sys.exit(1)


@cli.command()
@click.argument('path')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
def info(path, output_json):
    """Show information about a remote file, e.g. /doc/report.pdf."""
    try:
        file_info = run(lambda client: client.get_file_info(path))

        if output_json:
            data = {
                "filename": file_info.filename,
                "size": file_info.size,
                "url": file_info.url,
                "checksum": file_info.checksum,
                "content_type": file_info.content_type,
                "date": file_info.date.isoformat() if file_info.date else None,
            }
            console.print(json.dumps(data, indent=2))
            return

        table = Table(title=f"File Information: {file_info.filename}")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Filename", file_info.filename)
        table.add_row("Size", format_file_size(file_info.size))
        table.add_row("Type", file_info.content_type or 'Unknown')
        table.add_row("Checksum", file_info.checksum or 'Unknown')
        table.add_row("URL", file_info.url)
        table.add_row("Uploaded", file_info.date.strftime('%Y-%m-%d %H:%M:%S UTC') if file_info.date else 'Unknown')
        table.add_row("Password", "Yes" if file_info.password_protected else "No")

        console.print(table)

    except Exception as e:
        console.print(f"❌ Failed to get file info: {e}")
        sys.exit(1)


if __name__ == '__main__':
    cli()
