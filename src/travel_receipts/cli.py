"""CLI entry point for travel-receipts."""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import click

from travel_receipts.config import (
    get_home_currency,
    get_parser_config,
    validate_currency_code,
)
from travel_receipts.interpreter import interpret_receipt_text
from travel_receipts.recognition import RecognitionError, recognize_receipt_image
from travel_receipts.translation import (
    create_translation_agent,
    fill_translations,
    translate_to_chinese,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from travel_receipts.translation import Translation


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log parsing decisions.")
def cli(verbose: bool) -> None:
    """Travel receipts: turn receipt text into purchase records."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--home-currency", help="Currency used when the text names none.")
@click.option("--translate", is_flag=True, help="Fill Chinese item names.")
def parse(source: TextIO, home_currency: str | None, translate: bool) -> None:
    """Parse recognized receipt text from SOURCE (default: stdin)."""
    try:
        config = get_parser_config()
        if home_currency:
            currency = validate_currency_code(home_currency)
            config = replace(config, home_currency=currency)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    receipt = interpret_receipt_text(source.read(), config=config)
    if translate:
        receipt = fill_translations(receipt, _translator())
    click.echo(receipt.model_dump_json(by_alias=True, indent=2))


@cli.command()
@click.argument(
    "image", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
def recognize(image: Path) -> None:
    """Recognize a receipt photo with the configured LLM."""
    media_type = mimetypes.guess_type(image.name)[0] or "image/jpeg"
    try:
        receipt = recognize_receipt_image(
            image.read_bytes(), media_type, home_currency=get_home_currency()
        )
    except RecognitionError as exc:
        msg = f"{exc}; please enter this receipt manually"
        raise click.ClickException(msg) from exc
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(receipt.model_dump_json(by_alias=True, indent=2))


def _translator() -> Callable[[str], Translation]:
    try:
        agent = create_translation_agent()
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    return partial(translate_to_chinese, agent=agent)
