"""Run-time configuration shared by the parser, the checks and the scorer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import IO, List, Set


@dataclass
class Configuration:
    """Options that steer which files are read and which checks run."""

    all_files: List[IO] = field(default_factory=list)
    verbose_output: int = 0
    ignore_container_cpu_limit_requirement: bool = False
    ignore_container_memory_limit_requirement: bool = False
    ignored_tests: Set[str] = field(default_factory=set)
    enabled_optional_tests: Set[str] = field(default_factory=set)
    use_ignore_checks_annotation: bool = False