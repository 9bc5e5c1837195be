import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from worklog.categorization.categories import COLORS, get_label
from worklog.config.settings import Settings
from worklog.database.connection import DatabaseConfig, DatabaseManager
from worklog.domain.enums import Category, UpdateStatus
from worklog.domain.models import Attachment, Update
from worklog.repositories.sqlite_attachment_repository import SQLiteAttachmentRepository
from worklog.repositories.sqlite_update_repository import SQLiteUpdateRepository
from worklog.services.attachment_service import AttachmentService
from worklog.services.backup_service import BackupService, default_export_filename
from worklog.services.models import UpdateFilters
from worklog.services.update_service import UpdateService, parse_date
from worklog.storage.file_store import FileStore

app = typer.Typer(
    name="worklog",
    help="Keep a dated log of the work you ship",
    add_completion=False,
)

console = Console()


@dataclass
class Services:
    db: DatabaseManager
    updates: UpdateService
    attachments: AttachmentService
    backup: BackupService


class State:
    """
    Per-invocation CLI state.

    Services are built on first use, so `--help` never touches the database.
    """
    verbose: bool = False
    settings: Optional[Settings] = None
    _services: Optional[Services] = None

    @property
    def services(self) -> Services:
        if self._services is None:
            self._services = build_services(self.settings or Settings.load())
        return self._services

    def close(self) -> None:
        if self._services is not None:
            self._services.db.close()
            self._services = None


state = State()


def build_services(settings: Settings) -> Services:
    """Wire repositories, file store and services for the given settings"""
    db_manager = DatabaseManager(DatabaseConfig(settings.db_path))
    db_manager.initialize()

    file_store = FileStore(settings.attachments_dir)
    update_repository = SQLiteUpdateRepository(db_manager)
    attachment_repository = SQLiteAttachmentRepository(db_manager)

    return Services(
        db=db_manager,
        updates=UpdateService(update_repository, attachment_repository, file_store),
        attachments=AttachmentService(
            attachment_repository,
            update_repository,
            file_store,
            max_upload_bytes=settings.max_upload_bytes,
        ),
        backup=BackupService(db_manager, update_repository, attachment_repository, file_store),
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def fail(error: Exception) -> None:
    """Report an error and exit with status 1"""
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    if state.verbose:
        console.print_exception()
    raise typer.Exit(code=1)


def category_text(update: Update) -> str:
    color = COLORS[update.category]
    marker = " [dim](auto)[/dim]" if update.is_auto_categorized else ""
    return f"[{color}]{get_label(update.category)}[/{color}]{marker}"


def attachment_text(attachment: Attachment) -> str:
    label = f" - {escape(attachment.label)}" if attachment.label else ""
    if attachment.url:
        target = attachment.url
    elif attachment.filename:
        target = attachment.filename
    else:
        target = f"{attachment.before_path} -> {attachment.after_path}"
    return f"[dim]{attachment.id}[/dim] {attachment.type.value}: {escape(target)}{label}"


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Database file (overrides settings.json)",
    ),
    attachments_dir: Optional[Path] = typer.Option(
        None,
        "--attachments-dir",
        help="Directory for uploaded images (overrides settings.json)",
    ),
):
    """
    Work Log - Record, categorize and review what you worked on.
    """
    settings = Settings.load()
    if db_path is not None:
        settings.db_path = db_path
    if attachments_dir is not None:
        settings.attachments_dir = attachments_dir

    state.verbose = verbose
    configure_logging("DEBUG" if verbose else settings.log_level)

    state.settings = settings
    ctx.call_on_close(state.close)


@app.command(name="add")
def add_update(
    title: str = typer.Argument(..., help="What you did"),
    on: Optional[str] = typer.Option(
        None,
        "--date", "-d",
        help="Date of the work (YYYY-MM-DD), defaults to today",
    ),
    description: Optional[str] = typer.Option(
        None,
        "--description", "-m",
        help="Longer description",
    ),
    category: Optional[Category] = typer.Option(
        None,
        "--category", "-c",
        help="Category. Leave out to auto-detect",
    ),
    tags: Optional[List[str]] = typer.Option(
        None,
        "--tag", "-t",
        help="Tag (repeatable)",
    ),
    status: UpdateStatus = typer.Option(
        UpdateStatus.COMPLETED,
        "--status", "-s",
        help="Status",
    ),
):
    """
    Record a new update.

    Examples:
        worklog add "Fixed login crash"
        worklog add "Wrote API guide" --date 2026-02-03 --tag docs
        worklog add "Sprint planning" --category other
    """
    try:
        update = state.services.updates.create_update(
            title=title,
            date=on or date.today(),
            description=description,
            category=category,
            tags=tags,
            status=status,
        )
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓[/bold green] Added update [cyan]{update.id}[/cyan]")
    console.print(f"  Category: {category_text(update)}")


@app.command(name="list")
def list_updates(
    date_from: Optional[str] = typer.Option(None, "--from", help="Earliest date (YYYY-MM-DD)"),
    date_to: Optional[str] = typer.Option(None, "--to", help="Latest date (YYYY-MM-DD)"),
    category: Optional[Category] = typer.Option(None, "--category", "-c", help="Only this category"),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Only updates with this tag"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Text in title or description"),
):
    """
    List updates grouped by week, newest first.

    Examples:
        worklog list
        worklog list --from 2026-02-01 --category bug_fix
        worklog list --search login
    """
    try:
        filters = UpdateFilters(
            date_from=parse_date(date_from) if date_from else None,
            date_to=parse_date(date_to) if date_to else None,
            category=category,
            tag=tag,
            search=search,
        )
        updates = state.services.updates.list_updates(filters)
    except Exception as e:
        fail(e)

    if not updates:
        console.print(Panel(
            "[yellow]No updates found[/yellow]",
            title="Empty Log",
            border_style="yellow"
        ))
        return

    for group in state.services.updates.group_by_week(updates):
        counts = ", ".join(
            f"{get_label(c)}: {n}" for c, n in group.category_counts.items()
        )
        table = Table(
            title=f"[bold]{group.label}[/bold] [dim]{group.week_key}[/dim]",
            caption=counts,
            show_header=True,
            padding=(0, 1),
        )
        table.add_column("Date", style="cyan", width=10)
        table.add_column("Title", style="white", max_width=40)
        table.add_column("Category", no_wrap=True)
        table.add_column("Status", style="dim")
        table.add_column("Tags", style="magenta")
        table.add_column("Files", justify="right")
        table.add_column("ID", style="dim")

        for update in group.updates:
            table.add_row(
                str(update.date),
                escape(update.title),
                category_text(update),
                update.status.value,
                escape(", ".join(update.tags)),
                str(len(update.attachments)) if update.attachments else "",
                update.id,
            )

        console.print(table)

    if state.verbose:
        console.print(f"\n[dim]→ {len(updates)} updates listed[/dim]")


@app.command(name="show")
def show_update(update_id: str = typer.Argument(..., help="Update ID")):
    """Show one update with its attachments."""
    try:
        update = state.services.updates.get_update(update_id)
    except Exception as e:
        fail(e)

    lines = [
        f"[bold]Date:[/bold] {update.date}",
        f"[bold]Category:[/bold] {category_text(update)}",
        f"[bold]Status:[/bold] {update.status.value}",
    ]
    if update.tags:
        lines.append(f"[bold]Tags:[/bold] {escape(', '.join(update.tags))}")
    if update.description:
        lines.append(f"\n{escape(update.description)}")
    if update.attachments:
        lines.append("\n[bold]Attachments[/bold]")
        lines.extend(f"  {attachment_text(a)}" for a in update.attachments)

    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]{escape(update.title)}[/bold]",
        subtitle=f"[dim]{update.id}[/dim]",
        border_style="cyan",
        padding=(1, 2),
    ))


@app.command(name="edit")
def edit_update(
    update_id: str = typer.Argument(..., help="Update ID"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(None, "--description", "-m", help="New description (\"\" clears it)"),
    on: Optional[str] = typer.Option(None, "--date", "-d", help="New date (YYYY-MM-DD)"),
    category: Optional[Category] = typer.Option(None, "--category", "-c", help="Set category by hand"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Replace tags (repeatable)"),
    status: Optional[UpdateStatus] = typer.Option(None, "--status", "-s", help="New status"),
    clear_tags: bool = typer.Option(False, "--clear-tags", help="Remove all tags"),
):
    """
    Change fields of an update. Setting a category turns off auto-detection.

    Examples:
        worklog edit <id> --status in_progress
        worklog edit <id> --category documentation
    """
    changes = {
        "title": title,
        "description": description,
        "date": on,
        "category": category,
        "tags": [] if clear_tags else (tags or None),
        "status": status,
    }
    changes = {k: v for k, v in changes.items() if v is not None}

    try:
        update = state.services.updates.edit_update(update_id, **changes)
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓[/bold green] Updated [cyan]{update.id}[/cyan]: {escape(update.title)}")


@app.command(name="delete")
def delete_update(
    update_id: str = typer.Argument(..., help="Update ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation"),
):
    """Delete an update together with its attachments."""
    if not yes:
        typer.confirm(f"Delete update {update_id} and its attachments?", abort=True)

    try:
        state.services.updates.delete_update(update_id)
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓[/bold green] Deleted {escape(update_id)}")


@app.command(name="stats")
def stats():
    """Show how many updates there are per category."""
    try:
        summary = state.services.updates.get_stats()
    except Exception as e:
        fail(e)

    table = Table(title=f"[bold]{summary.total} updates[/bold]", box=None, padding=(0, 2))
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Updates", justify="right")
    table.add_column("% of Total", justify="right", style="dim")

    for value, count in summary.sorted_counts:
        percentage = count / summary.total * 100 if summary.total else 0
        try:
            label = get_label(Category(value))
        except ValueError:
            label = value
        table.add_row(label, str(count), f"{percentage:.1f}%")

    console.print(table)


@app.command(name="suggest")
def suggest(
    title: str = typer.Argument(..., help="Title to categorize"),
    description: Optional[str] = typer.Option(None, "--description", "-m", help="Description"),
):
    """
    Show which category a title/description would get.

    Examples:
        worklog suggest "Deployed new server to AWS"
    """
    result = state.services.updates.suggest_category(title, description)
    color = COLORS[result.category]
    console.print(
        f"[{color}]{get_label(result.category)}[/{color}] "
        f"[dim](confidence {result.confidence:.2f})[/dim]"
    )


@app.command(name="recategorize")
def recategorize(
    overwrite: bool = typer.Option(
        False,
        "--overwrite",
        help="Also refresh updates that were already auto-categorized",
    ),
):
    """Re-run auto-categorization. Manual categories are left alone."""
    try:
        changed = state.services.updates.recategorize(overwrite=overwrite)
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓[/bold green] Recategorized {changed} updates")


@app.command(name="attach-image")
def attach_image(
    update_id: str = typer.Argument(..., help="Update ID"),
    filepath: Path = typer.Argument(..., help="Image file", exists=True, file_okay=True, dir_okay=False),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Caption"),
):
    """Attach an image to an update."""
    try:
        attachment = state.services.attachments.add_image(update_id, filepath, label)
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓[/bold green] Attached {attachment_text(attachment)}")


@app.command(name="attach-compare")
def attach_compare(
    update_id: str = typer.Argument(..., help="Update ID"),
    before: Path = typer.Argument(..., help="Before image", exists=True, dir_okay=False),
    after: Path = typer.Argument(..., help="After image", exists=True, dir_okay=False),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Caption"),
):
    """Attach a before/after image comparison to an update."""
    try:
        attachment = state.services.attachments.add_before_after(update_id, before, after, label)
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓[/bold green] Attached {attachment_text(attachment)}")


@app.command(name="attach-link")
def attach_link(
    update_id: str = typer.Argument(..., help="Update ID"),
    url: str = typer.Argument(..., help="URL"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Link text"),
):
    """Attach a link to an update."""
    try:
        attachment = state.services.attachments.add_link(update_id, url, label)
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓[/bold green] Attached {attachment_text(attachment)}")


@app.command(name="detach")
def detach(attachment_id: str = typer.Argument(..., help="Attachment ID")):
    """Remove an attachment and its files."""
    try:
        state.services.attachments.delete_attachment(attachment_id)
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓[/bold green] Removed attachment {escape(attachment_id)}")


@app.command(name="export")
def export_log(
    output: Optional[Path] = typer.Argument(
        None,
        help="Output file, defaults to worklog-export-<today>.json",
        dir_okay=False,
    ),
):
    """Export every update and attachment to a JSON backup."""
    try:
        path = state.services.backup.export_to_file(output or Path(default_export_filename()))
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓[/bold green] Exported to {path}")


@app.command(name="import")
def import_log(
    filepath: Path = typer.Argument(
        ...,
        help="Backup file created by 'worklog export'",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
):
    """Restore a JSON backup. Existing updates are never overwritten."""
    try:
        result = state.services.backup.import_from_file(filepath)
    except Exception as e:
        fail(e)

    console.print(f"[bold green]✓ Imported {result.updates_imported} updates, "
                  f"{result.attachments_imported} attachments[/bold green]")
    if result.updates_skipped or result.attachments_skipped:
        console.print(f"[yellow]⏭️  Skipped {result.updates_skipped} updates, "
                      f"{result.attachments_skipped} attachments[/yellow]")
        console.print("[dim]Rows already in the log, or attachments without their update, are skipped[/dim]")


@app.command(name="init-db")
def init_db():
    """Create the database tables (runs automatically, safe to repeat)."""
    db = state.services.db
    version = db.schema_version()
    if version is None:
        console.print("[bold red]✗[/bold red] Database initialization may have failed")
        raise typer.Exit(code=1)

    console.print(f"[bold green]✓[/bold green] Database ready at {db.config.db_path}")
    console.print(f"  Schema version: {version[0]} ({version[1]})")


def cli_main():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    cli_main()
