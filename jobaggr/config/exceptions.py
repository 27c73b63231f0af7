"""Errors raised while loading the aggregator's configuration."""

from pathlib import Path
from typing import Iterable, Optional, Sequence, Union


def field_path(loc: Sequence[Union[str, int]]) -> str:
    """
    Render a validation error location the way the key is written in YAML.

    ``("sources", 1, "identifier")`` becomes ``sources[1].identifier``;
    an empty location (a whole-document check) becomes ``(root)``.
    """
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path or "(root)"


class ConfigurationError(Exception):
    """
    The config file, an environment variable or a CLI override is unusable.

    Attributes:
        message: One-line summary
        errors: Individual problems, numbered in the rendered message
        suggestions: Hints for fixing them
        config_path: File the problems were found in, if any
        fields: Keys the problems point at, e.g. ``sources[0].identifier``,
            ``aggregator.timeout`` or ``LOG_LEVEL``; first occurrence order
    """

    def __init__(
        self,
        message: str,
        errors: Optional[Iterable[str]] = None,
        suggestions: Optional[Iterable[str]] = None,
        config_path: Optional[Path] = None,
        fields: Optional[Iterable[str]] = None,
    ):
        self.message = message
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        self.config_path = config_path
        self.fields = list(dict.fromkeys(fields or []))
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        header = self.message
        if self.config_path is not None:
            header = f"{header} ({self.config_path})"
        parts = [header]

        if self.errors:
            parts.append("\nValidation Errors:")
            parts.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))

        if self.suggestions:
            parts.append("\nSuggestions:")
            parts.extend(f"  - {suggestion}" for suggestion in self.suggestions)

        return "\n".join(parts)
