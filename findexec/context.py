"""
findexec RunConfig - Resolved command-line configuration.

Responsibilities:
- Hold every option of one run
- Serialization for the run report and debug logging

Invariants:
- Immutable once built by the CLI
"""

from dataclasses import asdict, dataclass
from typing import Any, Optional

from findexec.command import DEFAULT_COMMAND
from findexec.files import DEFAULT_DIRECTORY


@dataclass(frozen=True)
class RunConfig:
    """Options of one findexec run."""
    
    directory: str = DEFAULT_DIRECTORY
    directory_is_default: bool = True
    parallel: bool = False
    statistics: bool = False
    allfiles: bool = False
    descend: bool = False
    command: str = DEFAULT_COMMAND
    report_path: Optional[str] = None
    verbose: bool = False
    
    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return asdict(self)
