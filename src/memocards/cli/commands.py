"""CLI command implementations"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Awaitable, Callable, Optional, TypeVar

import typer
from sqlmodel import SQLModel

from memocards.config import Settings, configure_logging, load_config
from memocards.core.coordinator import EditCoordinator
from memocards.core.models import CardState
from memocards.core.utils.tags import has_tag
from memocards.crud.database import init_db, make_engine
from memocards.crud.file_repo import FileDocumentStore
from memocards.crud.sql_repo import SQLStateStore


logger = logging.getLogger(__name__)

T = TypeVar("T")

PathArg = Annotated[str, typer.Argument(help="Markdown document to operate on")]
IndexArg = Annotated[int, typer.Argument(help="Card index (non-empty blocks, from 0)")]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    if settings.show_debug_log:
        configure_logging(True)
    return settings


async def _session(
    path: str,
    settings: Settings,
    action: Callable[[EditCoordinator], Awaitable[T]],
    confirm=None,
    ) -> T:
    engine = make_engine(settings.db_url)
    init_db(engine)
    coordinator = EditCoordinator(
        path, FileDocumentStore(), SQLStateStore(engine), settings, confirm=confirm,
    )
    await coordinator.open()
    try:
        return await action(coordinator)
    finally:
        coordinator.close()


def _run(path: str, settings: Settings, action: Callable[[EditCoordinator], Awaitable[T]], confirm=None) -> T:
    """Open path in a coordinator, run action against it, and map I/O errors to CLI failures."""
    logger.debug("Opening %s (state db %s)", path, settings.db_url)
    try:
        return asyncio.run(_session(path, settings, action, confirm))
    except OSError as e:
        _fail(f"Cannot access {path}", e)


def _changed(ok: bool, what: str) -> None:
    if not ok:
        _fail(f"Nothing changed: {what}")
    typer.echo("Saved.")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize the card state database. Use --reset to clear cached state."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        SQLModel.metadata.drop_all(engine)
        typer.echo("Existing card state cleared.")
    init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def has_tag_cmd(path: PathArg):
    """Exit 0 if the document carries the configured memos tag, else 1."""
    settings = _settings()
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot read {path}", e)
    if not has_tag(text, settings.memos_tag):
        typer.echo(f"{path}: no #{settings.memos_tag} tag")
        raise typer.Exit(1)
    typer.echo(f"{path}: tagged #{settings.memos_tag}")


def show_cmd(
    path: PathArg,
    force: Annotated[bool, typer.Option("--force", help="Show cards even without the memos tag")] = False,
    ):
    """Print the document title and one line per card."""
    settings = _settings()
    if not force:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            _fail(f"Cannot read {path}", e)
        if not has_tag(text, settings.memos_tag):
            _fail(f"{path} is not tagged #{settings.memos_tag} (use --force)")

    async def _lines(c: EditCoordinator) -> list[str]:
        lines = [c.display_title]
        for card in c.cards:
            box = ("[x] " if card.checked else "[ ] ") if card.block.is_section else ""
            folded = " (collapsed)" if card.collapsed else ""
            lines.append(f"  {card.index:>3} {box}{card.label}{folded}")
        if c.draft_id:
            lines.append(f"  draft ^{c.draft_id}: {c.quick_input.get_value()}")
        return lines

    for line in _run(path, settings, _lines):
        typer.echo(line)


def check_cmd(
    path: PathArg,
    index: IndexArg,
    checked: Annotated[Optional[bool], typer.Option("--on/--off", help="Set instead of flipping")] = None,
    ):
    """Flip (or set) the checkbox of a section card."""
    settings = _settings()
    ok = _run(path, settings, lambda c: c.toggle_check(index, checked))
    _changed(ok, f"block {index} is not a section")


def collapse_cmd(
    path: PathArg,
    index: IndexArg,
    expand: Annotated[bool, typer.Option("--expand", help="Expand instead of collapsing")] = False,
    ):
    """Store the collapsed state of a section card in its heading."""
    settings = _settings()
    ok = _run(path, settings, lambda c: c.toggle_collapse(index, CardState(collapsed=not expand)))
    _changed(ok, f"no card at index {index}")


def delete_cmd(
    path: PathArg,
    index: IndexArg,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")] = False,
    ):
    """Delete a card after confirmation."""
    settings = _settings()
    confirm = (lambda: True) if yes else (lambda: typer.confirm(f"Delete card {index}?"))
    ok = _run(path, settings, lambda c: c.delete(index), confirm=confirm)
    if not ok:
        typer.echo("No change.")
        return
    typer.echo(f"Deleted card {index}.")


def move_cmd(
    path: PathArg,
    from_index: Annotated[int, typer.Argument(help="Index of the card to move")],
    to_index: Annotated[int, typer.Argument(help="Index it should end up at")],
    ):
    """Move a card to a new position."""
    settings = _settings()
    ok = _run(path, settings, lambda c: c.reorder(from_index, to_index))
    _changed(ok, f"cannot move {from_index} -> {to_index}")


def edit_cmd(
    path: PathArg,
    index: IndexArg,
    text: Annotated[str, typer.Argument(help="Replacement markdown for the card")],
    ):
    """Replace a card's markdown."""
    settings = _settings()
    if not text.strip():
        _fail("Replacement text is empty")
    ok = _run(path, settings, lambda c: c.edit(index, text))
    _changed(ok, f"no card at index {index}")


def add_cmd(
    path: PathArg,
    text: Annotated[str, typer.Argument(help="Markdown body of the new section")],
    ):
    """Append a timestamped section, replacing any pending draft."""
    settings = _settings()
    block = _run(path, settings, lambda c: c.append(text))
    if block is None:
        _fail("Nothing to add")
    typer.echo(f"Added ^{block.id}")


def new_card_cmd(path: PathArg):
    """Append an empty timestamped section."""
    settings = _settings()
    block = _run(path, settings, lambda c: c.add_card())
    typer.echo(f"Added ^{block.id}")


def render_cmd(path: PathArg, index: IndexArg):
    """Print the HTML body of one card."""
    settings = _settings()

    async def _html(c: EditCoordinator) -> Optional[str]:
        card = c.card_for(index)
        return card.html if card else None

    html = _run(path, settings, _html)
    if html is None:
        _fail(f"No card at index {index}")
    typer.echo(html)
