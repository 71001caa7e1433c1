"""Export and import Anki decks as TOML, JSON or YAML through AnkiConnect."""

__version__ = "0.1.0"
__all__ = ["__version__"]