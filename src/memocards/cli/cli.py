"""CLI entrypoint: Typer app definition and command registration"""

from typing import Annotated

import typer

from memocards.cli.commands import (
    add_cmd,
    check_cmd,
    collapse_cmd,
    delete_cmd,
    edit_cmd,
    has_tag_cmd,
    init_cmd,
    move_cmd,
    new_card_cmd,
    render_cmd,
    show_cmd,
)
from memocards.config import configure_logging


app = typer.Typer(name="memocards", no_args_is_help=True, help="Edit tagged markdown notes as a stack of cards")


@app.callback()
def main(
    debug: Annotated[bool, typer.Option("--debug", help="Emit debug logging")] = False,
    ):
    configure_logging(debug)


app.command(name="init")(init_cmd)
app.command(name="show")(show_cmd)
app.command(name="has-tag")(has_tag_cmd)
app.command(name="check")(check_cmd)
app.command(name="collapse")(collapse_cmd)
app.command(name="delete")(delete_cmd)
app.command(name="move")(move_cmd)
app.command(name="edit")(edit_cmd)
app.command(name="add")(add_cmd)
app.command(name="new-card")(new_card_cmd)
app.command(name="render")(render_cmd)
