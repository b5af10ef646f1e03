"""
Raw flight log model (source-format, unnormalized).

The CSV loader reads blackbox exports into this structure. Rows keep the
column names and raw cell values of the source file; all interpretation
happens in the services.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional


# One timestamped sample: column name -> raw cell (number, numeric/hex string, or None)
Row = Mapping[str, Any]


@dataclass
class RawLog:
    """Rows extracted from a blackbox/telemetry export."""

    name: str
    rows: list[Row] = field(default_factory=list)
    source_file: Optional[Path] = None
    columns: list[str] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)
