"""Client and request types for the AnkiConnect HTTP API."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .formats import Note, NoteField

DEFAULT_URL = "http://localhost:8765"
API_VERSION = 6


class AnkiConnectError(Exception):
    """Raised when a request to AnkiConnect fails."""


def _encode_param(obj: Any) -> Any:
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


@dataclass
class AnkiClient:
    """Sends actions to an AnkiConnect endpoint."""

    url: str = DEFAULT_URL
    timeout: float | None = None

    def request(self, action: str, params: Any = None, version: int = API_VERSION) -> Any:
        """Perform an action and return its decoded result."""
        payload: dict[str, Any] = {"action": action, "version": version}
        if params is not None:
            payload["params"] = params
        try:
            body = json.dumps(payload, default=_encode_param).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise AnkiConnectError(f"failed to marshal request: {exc}") from exc

        http_request = urllib.request.Request(
            self.url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(http_request, timeout=self.timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as exc:
            raw = exc.read()
        except (urllib.error.URLError, OSError) as exc:
            raise AnkiConnectError(f"failed to send request: {exc}") from exc

        try:
            reply = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise AnkiConnectError(f"failed to unmarshal response: {exc}") from exc
        if not isinstance(reply, dict):
            raise AnkiConnectError(
                "failed to unmarshal response: expected an object, "
                f"got {type(reply).__name__}"
            )
        error = reply.get("error")
        if error is not None:
            raise AnkiConnectError(f"AnkiConnect error: {error}")
        return reply.get("result")


@dataclass
class CreateNoteOptions:
    """Options for adding a note."""

    allow_duplicate: bool = False
    duplicate_scope: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowDuplicate": self.allow_duplicate,
            "duplicateScope": self.duplicate_scope,
        }


@dataclass
class CreateNote:
    """A note to be added to a deck."""

    deck_name: str
    model_name: str
    fields: dict[str, str] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    options: CreateNoteOptions | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "deckName": self.deck_name,
            "modelName": self.model_name,
            "fields": dict(self.fields),
            "tags": list(self.tags),
        }
        if self.options is not None:
            data["options"] = self.options.to_dict()
        return data


def note_from_info(info: Mapping[str, Any]) -> Note:
    """Convert a note-info object returned by AnkiConnect into a Note."""
    fields = {
        name: NoteField(value=raw.get("value", ""), order=raw.get("order", 0))
        for name, raw in (info.get("fields") or {}).items()
    }
    return Note(
        note_id=info.get("noteId", 0),
        tags=list(info.get("tags") or []),
        fields=fields,
        model_name=info.get("modelName", ""),
    )


def notes_from_infos(infos: Iterable[Mapping[str, Any]]) -> list[Note]:
    """Convert a sequence of note-info objects into Notes."""
    return [note_from_info(info) for info in infos]


def deck_to_notes(deck: str, infos: Iterable[Mapping[str, Any]]) -> list[Note]:
    """Convert the note-info objects of a deck into Notes."""
    return notes_from_infos(infos)