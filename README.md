# ankituls

Move Anki decks in and out of plain text files. `ankituls` talks to a
running Anki instance through the AnkiConnect add-on. The default address is
`http://localhost:8765`. It exports a deck as TOML, JSON or YAML and imports
such a file back as a deck.

## Installation

```
pip install .
```

Anki has to be running with the AnkiConnect add-on enabled.

## Command line

The package installs the `ankitu` command. Run without a subcommand, it
prints its help.

List the decks Anki knows about:

```
ankitu list
```

Export a deck to standard output. TOML is the default format. Use `-F` or
`--format` to pick `toml`, `json` or `yaml` (`yml` is accepted too):

```
ankitu export "My Deck" > my-deck.toml
ankitu export "My Deck" --format yaml > my-deck.yaml
```

The export is sorted so the output is the same from run to run. Notes are
ordered by note id, and tags and field names alphabetically. The definitions
of the models (note types) that the notes use are included under `models`.
TOML and YAML output starts with the comment
`# ankituls export schema version = 1`. YAML output puts every string in
double quotes.

Import a deck from a file. The file extension sets the format: `.toml`,
`.json`, `.yaml` or `.yml`. The import refuses to overwrite a deck that
already exists unless you pass `-f` or `--force`. With `--force` the old deck
and its cards are deleted first:

```
ankitu import my-deck.toml
ankitu import my-deck.yaml --force
```

On success the command prints `Imported deck <name>`. Any failure, such as an
unknown deck, an unreachable AnkiConnect or a malformed file, prints a
message to standard error and exits with status 1.

## What it does not do

- Import does not create models. The `models` section of a file is written
  on export but ignored on import. The note types that the notes name must
  already exist in Anki.
- Import does not keep note ids, scheduling or review history. Notes are
  added as new notes with their fields and tags.

## Library use

`ankituls.formats` holds the document model (`Export`, `Note`, `NoteField`)
and its encodings:

```python
import io
from ankituls.formats import Note, NoteField, to_export, marshal, unmarshal

note = Note(
    note_id=1,
    tags=["vocab"],
    fields={"Front": NoteField("Q", 0), "Back": NoteField("A", 1)},
    model_name="Basic",
)
export = to_export(1, "My Deck", [note], [])

buf = io.StringIO()
marshal("yaml", buf, export)
buf.seek(0)
assert unmarshal("yaml", buf) == export
```

`marshal` and `unmarshal` take the format names `toml`, `json`, `yaml` and
`yml`. The functions for each format can also be called directly:
`marshal_json`/`unmarshal_json`, `marshal_toml`/`unmarshal_toml` and
`marshal_yaml`/`unmarshal_yaml`. Writing sorts the export in place
(`Export.sort_for_export`). Reading JSON sorts it too. `Export.to_dict` and
`export_from_dict` convert to and from plain dictionaries. Keys that are
missing take zero values.

`ankituls.ankiconnect.AnkiClient` sends raw AnkiConnect actions and returns
the decoded `result`:

```python
from ankituls.ankiconnect import AnkiClient

client = AnkiClient()  # url="http://localhost:8765", timeout=None
print(client.request("deckNames", None, 6))
```

The same module provides `CreateNote` and `CreateNoteOptions` for building
`addNotes` parameters. It also provides `note_from_info` and
`notes_from_infos`, which turn `notesInfo` results into `Note` objects.

AnkiConnect errors and transport errors raise
`ankituls.ankiconnect.AnkiConnectError`. Malformed files and unsupported
formats raise `ankituls.formats.FormatError`, a subclass of `ValueError`.