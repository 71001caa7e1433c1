"""Command-line interface for exporting, importing and listing Anki decks."""

from __future__ import annotations

import argparse
import sys
from typing import IO, Any, Sequence

from termcolor import colored

from .ankiconnect import API_VERSION, AnkiClient, AnkiConnectError, CreateNote, notes_from_infos
from .formats import Export, FormatError, marshal, unmarshal

PROG = "ankitu"

_EXTENSIONS = (
    (".toml", "toml"),
    (".json", "json"),
    (".yaml", "yaml"),
    (".yml", "yaml"),
)


class CommandError(Exception):
    """Raised when a command cannot complete; carries an optional hint."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


def _request(client: Any, action: str, params: Any, failure: str) -> Any:
    try:
        return client.request(action, params, API_VERSION)
    except AnkiConnectError as exc:
        raise CommandError(f"{failure}: {exc}") from exc


def _deck_names(client: Any) -> list[str]:
    return list(_request(client, "deckNames", None, "Failed to get deck names") or [])


def format_for_path(path: str) -> str:
    """Return the document format implied by a file's extension."""
    for suffix, fmt in _EXTENSIONS:
        if str(path).endswith(suffix):
            return fmt
    raise CommandError(f"Unknown file extension for import: {path}")


def export_deck(client: Any, deck: str, fmt: str, out: IO[str]) -> None:
    """Fetch a deck's notes and models and write them to out in the given format."""
    if deck not in _deck_names(client):
        raise CommandError(
            f'Deck "{deck}" does not exist.',
            hint=f'Use "{PROG} list" to list all available decks.',
        )

    note_ids = _request(
        client, "findNotes", {"query": f'"deck:{deck}"'}, "Failed to find notes"
    ) or []
    infos = _request(
        client, "notesInfo", {"notes": list(note_ids)}, "Failed to get notes info"
    ) or []
    notes = notes_from_infos(infos)

    model_names = list(dict.fromkeys(info.get("modelName", "") for info in infos))
    models: list[Any] = []
    if model_names:
        models = list(
            _request(
                client,
                "findModelsByName",
                {"modelNames": model_names},
                "Failed to fetch model definitions",
            )
            or []
        )

    export = Export(version=1, deck_name=deck, notes=notes, models=models)
    try:
        marshal(fmt.lower(), out, export)
    except FormatError as exc:
        raise CommandError(f"Failed to marshal {fmt}: {exc}") from exc


def import_deck(client: Any, path: str, force: bool) -> str:
    """Create a deck from an export file and return the deck's name."""
    fmt = format_for_path(path)
    try:
        with open(path, "rb") as stream:
            try:
                export = unmarshal(fmt, stream)
            except FormatError as exc:
                raise CommandError(f"Failed to parse {fmt}: {exc}") from exc
    except OSError as exc:
        raise CommandError(f"Failed to open file: {exc}") from exc

    exists = export.deck_name in _deck_names(client)
    if exists and not force:
        raise CommandError(
            f'Deck "{export.deck_name}" already exists. Use --force to overwrite.'
        )
    if exists:
        _request(
            client,
            "deleteDecks",
            {"decks": [export.deck_name], "cardsToo": True},
            "Failed to delete deck",
        )

    _request(client, "createDeck", {"deck": export.deck_name}, "Failed to create deck")

    notes = [
        CreateNote(
            deck_name=export.deck_name,
            model_name=note.model_name,
            fields={name: f.value for name, f in note.fields.items()},
            tags=list(note.tags),
        )
        for note in export.notes
    ]
    _request(client, "addNotes", {"notes": notes}, "Failed to add notes")
    return export.deck_name


def list_decks(client: Any, out: IO[str]) -> None:
    """Write the names of all available decks to out."""
    names = _deck_names(client)
    if not names:
        print(colored("No decks found in Anki.", "yellow"), file=out)
        return
    print("Available decks:", file=out)
    for name in names:
        print(" -", name, file=out)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG, description="Ankitu - Anki deck import/export tool"
    )
    commands = parser.add_subparsers(dest="command")

    export_cmd = commands.add_parser(
        "export", help="Export a deck to TOML/JSON/YAML (prints to stdout)"
    )
    export_cmd.add_argument("deck")
    export_cmd.add_argument(
        "-F", "--format", default="toml", help="Export format: toml, json, yaml"
    )

    import_cmd = commands.add_parser("import", help="Import a deck from TOML")
    import_cmd.add_argument("file")
    import_cmd.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite deck if it already exists",
    )

    commands.add_parser("list", help="List available decks")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    client = AnkiClient()
    try:
        if args.command == "export":
            export_deck(client, args.deck, args.format, sys.stdout)
        elif args.command == "import":
            deck = import_deck(client, args.file, args.force)
            print(colored(f"Imported deck {deck}", "green"))
        else:
            list_decks(client, sys.stdout)
    except CommandError as exc:
        print(colored(str(exc), "red"), file=sys.stderr)
        if exc.hint:
            print(exc.hint, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())