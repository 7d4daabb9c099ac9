"""
Parser options.

Options are plain data and can be built from a mapping or from YAML text
(for example the contents of a project settings file read by the caller):

    strict_for_arguments: true
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

_yaml = YAML(typ="safe")


@dataclass(frozen=True)
class ParserOptions:
    """
    Options controlling grammar strictness.

    Attributes:
        strict_for_arguments: Reject functions and operators as FOR start,
            end and step expressions. Off by default: any element other than
            the loop variable slot is accepted there.
    """
    strict_for_arguments: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ParserOptions:
        """
        Create from a parsed mapping.

        Raises:
            ValueError: On unknown keys or values of the wrong type
        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ValueError(f"Unknown parser options: {', '.join(map(str, unknown))}")

        values = {}
        for name, value in data.items():
            if not isinstance(value, bool):
                raise ValueError(f"Parser option '{name}' must be a boolean, got {value!r}")
            values[name] = value
        return cls(**values)


def load_options(text: str) -> ParserOptions:
    """
    Parse parser options from YAML text.

    Args:
        text: YAML document; empty text yields the defaults

    Returns:
        Parsed options

    Raises:
        ValueError: If the YAML is malformed, is not a mapping or holds invalid options
    """
    try:
        data = _yaml.load(text)
    except YAMLError as e:
        raise ValueError(f"Invalid parser options YAML: {e}") from e

    if data is None:
        return ParserOptions()
    if not isinstance(data, dict):
        raise ValueError("Parser options YAML must be a mapping")
    return ParserOptions.from_dict(data)


__all__ = ["ParserOptions", "load_options"]
