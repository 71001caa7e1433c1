import io

import pytest

from ankituls.ankiconnect import AnkiConnectError, CreateNote
from ankituls.cli import (
    CommandError,
    export_deck,
    format_for_path,
    import_deck,
    list_decks,
    main,
)
from ankituls.formats import Export, Note, NoteField, marshal_toml, unmarshal_json


class FakeClient:
    def __init__(self, responses=None, failures=()):
        self.responses = responses or {}
        self.failures = set(failures)
        self.calls = []

    def request(self, action, params=None, version=6):
        self.calls.append((action, params, version))
        if action in self.failures:
            raise AnkiConnectError(f"AnkiConnect error: {action} broke")
        return self.responses.get(action)

    def actions(self):
        return [call[0] for call in self.calls]

    def params(self, action):
        return next(call[1] for call in self.calls if call[0] == action)


def _infos():
    return [
        {
            "noteId": 2,
            "tags": ["b", "a"],
            "fields": {"z": {"value": "Z", "order": 2}, "a": {"value": "A", "order": 1}},
            "modelName": "Basic",
        },
        {
            "noteId": 1,
            "tags": ["d", "c"],
            "fields": {"Front": {"value": "Q", "order": 0}},
            "modelName": "Basic",
        },
    ]


def _export_client(deck="Test Deck"):
    return FakeClient(
        {
            "deckNames": ["Default", deck],
            "findNotes": [2, 1],
            "notesInfo": _infos(),
            "findModelsByName": ["model1"],
        }
    )


@pytest.mark.parametrize(
    "path, fmt",
    [
        ("deck.toml", "toml"),
        ("deck.json", "json"),
        ("deck.yaml", "yaml"),
        ("deck.yml", "yaml"),
    ],
)
def test_format_for_path(path, fmt):
    assert format_for_path(path) == fmt


def test_format_for_path_unknown_extension():
    with pytest.raises(CommandError, match="Unknown file extension for import: deck.txt"):
        format_for_path("deck.txt")


def test_list_decks_prints_names():
    out = io.StringIO()
    list_decks(FakeClient({"deckNames": ["Default", "Spanish"]}), out)
    assert out.getvalue().splitlines() == ["Available decks:", " - Default", " - Spanish"]


def test_list_decks_empty():
    out = io.StringIO()
    list_decks(FakeClient({"deckNames": []}), out)
    assert "No decks found in Anki." in out.getvalue()
    assert "Available decks:" not in out.getvalue()


def test_list_decks_request_failure():
    with pytest.raises(CommandError, match="Failed to get deck names"):
        list_decks(FakeClient(failures={"deckNames"}), io.StringIO())


def test_export_missing_deck():
    client = FakeClient({"deckNames": ["Default"]})
    with pytest.raises(CommandError, match="does not exist") as info:
        export_deck(client, "Nope", "toml", io.StringIO())
    assert "list" in info.value.hint
    assert client.actions() == ["deckNames"]


def test_export_json_output_is_sorted_and_complete():
    client = _export_client()
    out = io.StringIO()
    export_deck(client, "Test Deck", "json", out)

    got = unmarshal_json(io.StringIO(out.getvalue()))
    assert got.version == 1
    assert got.deck_name == "Test Deck"
    assert [note.note_id for note in got.notes] == [1, 2]
    assert got.notes[1].tags == ["a", "b"]
    assert list(got.notes[1].fields) == ["a", "z"]
    assert got.models == ["model1"]


def test_export_sends_expected_requests():
    client = _export_client()
    export_deck(client, "Test Deck", "toml", io.StringIO())
    assert client.actions() == ["deckNames", "findNotes", "notesInfo", "findModelsByName"]
    assert client.params("findNotes") == {"query": '"deck:Test Deck"'}
    assert client.params("notesInfo") == {"notes": [2, 1]}
    assert client.params("findModelsByName") == {"modelNames": ["Basic"]}
    assert all(call[2] == 6 for call in client.calls)


def test_export_skips_models_when_no_notes():
    client = FakeClient({"deckNames": ["Empty"], "findNotes": [], "notesInfo": []})
    out = io.StringIO()
    export_deck(client, "Empty", "json", out)
    assert "findModelsByName" not in client.actions()
    assert unmarshal_json(io.StringIO(out.getvalue())).notes == []


def test_export_format_is_case_insensitive():
    out = io.StringIO()
    export_deck(_export_client(), "Test Deck", "JSON", out)
    assert unmarshal_json(io.StringIO(out.getvalue())).deck_name == "Test Deck"


def test_export_toml_has_schema_comment():
    out = io.StringIO()
    export_deck(_export_client(), "Test Deck", "toml", out)
    assert out.getvalue().startswith("# ankituls export schema version = 1\n")


def test_export_unsupported_format():
    with pytest.raises(CommandError, match="Failed to marshal xml"):
        export_deck(_export_client(), "Test Deck", "xml", io.StringIO())


def test_export_find_notes_failure():
    client = _export_client()
    client.failures.add("findNotes")
    with pytest.raises(CommandError, match="Failed to find notes"):
        export_deck(client, "Test Deck", "json", io.StringIO())


def _write_deck(tmp_path, name="deck.toml"):
    export = Export(
        version=1,
        deck_name="Test Deck",
        notes=[
            Note(
                note_id=1,
                tags=["tag1", "tag2"],
                fields={"Front": NoteField("Q", 1), "Back": NoteField("A", 2)},
                model_name="Basic",
            )
        ],
        models=["model1"],
    )
    path = tmp_path / name
    with open(path, "w", encoding="utf-8") as stream:
        marshal_toml(stream, export)
    return path


def test_import_new_deck(tmp_path):
    path = _write_deck(tmp_path)
    client = FakeClient({"deckNames": ["Default"]})
    assert import_deck(client, str(path), False) == "Test Deck"
    assert client.actions() == ["deckNames", "createDeck", "addNotes"]
    assert client.params("createDeck") == {"deck": "Test Deck"}
    notes = client.params("addNotes")["notes"]
    assert notes == [
        CreateNote(
            deck_name="Test Deck",
            model_name="Basic",
            fields={"Back": "A", "Front": "Q"},
            tags=["tag1", "tag2"],
        )
    ]


def test_import_existing_deck_without_force(tmp_path):
    path = _write_deck(tmp_path)
    client = FakeClient({"deckNames": ["Test Deck"]})
    with pytest.raises(CommandError, match="already exists"):
        import_deck(client, str(path), False)
    assert client.actions() == ["deckNames"]


def test_import_existing_deck_with_force(tmp_path):
    path = _write_deck(tmp_path)
    client = FakeClient({"deckNames": ["Test Deck"]})
    import_deck(client, str(path), True)
    assert client.actions() == ["deckNames", "deleteDecks", "createDeck", "addNotes"]
    assert client.params("deleteDecks") == {"decks": ["Test Deck"], "cardsToo": True}


def test_import_invalid_content(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("not = 'valid = toml", encoding="utf-8")
    with pytest.raises(CommandError, match="Failed to parse toml"):
        import_deck(FakeClient({"deckNames": []}), str(path), False)


def test_import_missing_file(tmp_path):
    with pytest.raises(CommandError, match="Failed to open file"):
        import_deck(FakeClient(), str(tmp_path / "absent.json"), False)


def test_import_add_notes_failure(tmp_path):
    path = _write_deck(tmp_path)
    client = FakeClient({"deckNames": []}, failures={"addNotes"})
    with pytest.raises(CommandError, match="Failed to add notes"):
        import_deck(client, str(path), False)


def test_main_unknown_extension(capsys):
    assert main(["import", "deck.txt"]) == 1
    assert "Unknown file extension for import: deck.txt" in capsys.readouterr().err


def test_main_without_command_prints_help(capsys):
    assert main([]) == 0
    assert "export" in capsys.readouterr().out


def test_main_export_requires_deck():
    with pytest.raises(SystemExit) as info:
        main(["export"])
    assert info.value.code == 2