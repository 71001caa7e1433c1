"""Deck export document model and its JSON, TOML and YAML encodings."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from typing import IO, Any

import tomli_w
import yaml

SCHEMA_COMMENT = "ankituls export schema version = 1"


class FormatError(ValueError):
    """Raised when an export document cannot be encoded or decoded."""


@dataclass
class NoteField:
    """A single named field of a note."""

    value: str = ""
    order: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "order": self.order}


@dataclass
class Note:
    """A single note with its tags and fields."""

    note_id: int = 0
    tags: list[str] = field(default_factory=list)
    fields: dict[str, NoteField] = field(default_factory=dict)
    model_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "noteId": self.note_id,
            "tags": list(self.tags),
            "fields": {name: f.to_dict() for name, f in self.fields.items()},
            "modelName": self.model_name,
        }


@dataclass
class Export:
    """Top-level document describing an exported deck."""

    version: int = 0
    deck_name: str = ""
    notes: list[Note] = field(default_factory=list)
    models: list[Any] = field(default_factory=list)

    def sort_for_export(self) -> None:
        """Sort notes, tags and fields in place for deterministic output."""
        self.notes.sort(key=lambda note: note.note_id)
        for note in self.notes:
            note.tags.sort()
            note.fields = dict(sorted(note.fields.items()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "deck_name": self.deck_name,
            "notes": [note.to_dict() for note in self.notes],
            "models": list(self.models),
        }


def _typed(value: Any, kind: type, what: str, default: Any) -> Any:
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise FormatError(
            f"{what}: expected {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _unsigned(value: Any, what: str) -> int:
    number = _typed(value, int, what, 0)
    if number < 0:
        raise FormatError(f"{what}: must not be negative, got {number}")
    return number


def _note_from_dict(data: Any) -> Note:
    data = _typed(data, dict, "note", {})
    tags = _typed(data.get("tags"), list, "note tags", [])
    for tag in tags:
        _typed(tag, str, "note tag", "")
    raw_fields = _typed(data.get("fields"), dict, "note fields", {})
    fields = {}
    for name, raw in raw_fields.items():
        raw = _typed(raw, dict, f"field {name!r}", {})
        fields[name] = NoteField(
            value=_typed(raw.get("value"), str, f"field {name!r} value", ""),
            order=_unsigned(raw.get("order"), f"field {name!r} order"),
        )
    return Note(
        note_id=_unsigned(data.get("noteId"), "noteId"),
        tags=list(tags),
        fields=fields,
        model_name=_typed(data.get("modelName"), str, "modelName", ""),
    )


def export_from_dict(data: Any) -> Export:
    """Build an Export from a decoded document; missing keys take zero values."""
    data = _typed(data, dict, "export document", {})
    notes = _typed(data.get("notes"), list, "notes", [])
    return Export(
        version=_typed(data.get("version"), int, "version", 0),
        deck_name=_typed(data.get("deck_name"), str, "deck_name", ""),
        notes=[_note_from_dict(note) for note in notes],
        models=list(_typed(data.get("models"), list, "models", [])),
    )


def to_export(
    version: int, deck_name: str, notes: list[Note], models: list[Any]
) -> Export:
    """Assemble an Export from its parts."""
    return Export(version=version, deck_name=deck_name, notes=notes, models=models)


def _read_text(stream: IO) -> str:
    data = stream.read()
    if isinstance(data, bytes):
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FormatError(f"input is not valid UTF-8: {exc}") from exc
    return data


def marshal_json(stream: IO[str], export: Export) -> None:
    """Write the export as indented JSON, sorted deterministically."""
    export.sort_for_export()
    try:
        text = json.dumps(export.to_dict(), indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"cannot encode JSON: {exc}") from exc
    stream.write(text + "\n")


def unmarshal_json(stream: IO) -> Export:
    """Read an export from JSON and sort it deterministically."""
    try:
        data = json.loads(_read_text(stream))
    except json.JSONDecodeError as exc:
        raise FormatError(f"invalid JSON: {exc}") from exc
    export = export_from_dict(data)
    export.sort_for_export()
    return export


def marshal_toml(stream: IO[str], export: Export) -> None:
    """Write the export as TOML, preceded by the schema comment."""
    export.sort_for_export()
    try:
        text = tomli_w.dumps(export.to_dict())
    except (TypeError, ValueError) as exc:
        raise FormatError(f"cannot encode TOML: {exc}") from exc
    stream.write(f"# {SCHEMA_COMMENT}\n")
    stream.write(text)


def unmarshal_toml(stream: IO) -> Export:
    """Read an export from TOML."""
    try:
        data = tomllib.loads(_read_text(stream))
    except tomllib.TOMLDecodeError as exc:
        raise FormatError(f"invalid TOML: {exc}") from exc
    return export_from_dict(data)


class _QuotedDumper(yaml.SafeDumper):
    """YAML dumper that double-quotes every string."""


def _represent_quoted_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')


_QuotedDumper.add_representer(str, _represent_quoted_str)


def _unshare(value: Any) -> Any:
    """Rebuild nested containers so no object appears twice (no YAML aliases)."""
    if isinstance(value, dict):
        return {key: _unshare(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_unshare(item) for item in value]
    return value


def marshal_yaml(stream: IO[str], export: Export) -> None:
    """Write the export as YAML with quoted strings and the schema comment."""
    export.sort_for_export()
    try:
        text = yaml.dump(
            _unshare(export.to_dict()),
            Dumper=_QuotedDumper,
            sort_keys=False,
            allow_unicode=True,
            indent=4,
            default_flow_style=False,
        )
    except yaml.YAMLError as exc:
        raise FormatError(f"cannot encode YAML: {exc}") from exc
    stream.write(f"# {SCHEMA_COMMENT}\n")
    stream.write(text)


def unmarshal_yaml(stream: IO) -> Export:
    """Read an export from YAML."""
    try:
        data = yaml.safe_load(_read_text(stream))
    except yaml.YAMLError as exc:
        raise FormatError(f"invalid YAML: {exc}") from exc
    if data is None:
        raise FormatError("empty YAML document")
    return export_from_dict(data)


_WRITERS = {
    "toml": marshal_toml,
    "json": marshal_json,
    "yaml": marshal_yaml,
    "yml": marshal_yaml,
}

_READERS = {
    "toml": unmarshal_toml,
    "json": unmarshal_json,
    "yaml": unmarshal_yaml,
    "yml": unmarshal_yaml,
}


def marshal(fmt: str, stream: IO[str], export: Export) -> None:
    """Write the export to the stream in the named format."""
    try:
        writer = _WRITERS[fmt]
    except KeyError:
        raise FormatError(f"unsupported format: {fmt}") from None
    writer(stream, export)


def unmarshal(fmt: str, stream: IO) -> Export:
    """Read an export from the stream in the named format."""
    try:
        reader = _READERS[fmt]
    except KeyError:
        raise FormatError(f"unsupported format: {fmt}") from None
    return reader(stream)