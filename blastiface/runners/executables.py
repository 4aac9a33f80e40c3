# blastiface/runners/executables.py
from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Dict, Optional

__all__ = ["ExecutableResolver", "ENV_PREFIX"]

logger = logging.getLogger(__name__)

# BLASTIFACE_RPSBLAST=/opt/ncbi-blast/bin/rpsblast pins one program to a path.
ENV_PREFIX = "BLASTIFACE_"


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


@dataclass
class ExecutableResolver:
    """
    Locate external programs.

    Lookup order for a program name:
      1. `overrides[name]`
      2. environment variable BLASTIFACE_<NAME>
      3. `shutil.which(name, path=search_path)` (search_path None -> $PATH)

    Override entries that do not point to an executable file are logged and
    skipped.
    """
    overrides: Dict[str, str] = field(default_factory=dict)
    search_path: Optional[str] = None

    def find(self, name: str) -> Optional[str]:
        candidates = (
            ("override", self.overrides.get(name)),
            ("environment", os.environ.get(ENV_PREFIX + name.upper())),
        )
        for origin, path in candidates:
            if not path:
                continue
            if _is_executable(path):
                return path
            logger.warning("Ignoring %s path for %s, not an executable: %s", origin, name, path)
        return shutil.which(name, path=self.search_path)
