"""Exporters for converting a dependency closure to various output formats."""

from .list_exporter import to_list
from .mermaid_exporter import to_mermaid
from .ascii_exporter import to_ascii
from .json_exporter import to_json

__all__ = ["to_list", "to_mermaid", "to_ascii", "to_json"]
