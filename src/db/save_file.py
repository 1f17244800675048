"""
Single-slot save file ("Save & Main Menu").

Holds exactly one snapshot text (see src/chess/snapshot.py). Saving again overwrites it.
"""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class SaveFile:
    def __init__(self, path: Path) -> None:
        self.path = path

    def write(self, snapshot: str) -> None:
        self.path.write_text(snapshot, encoding="utf-8")
        logger.info("Saved game to %s", self.path)

    def read(self) -> Optional[str]:
        """None if nothing has been saved yet (or the file cannot be read)."""
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError:
            logger.exception("Could not read save file %s", self.path)
            return None
        except UnicodeDecodeError:
            logger.warning("Save file %s is not a text file, ignoring it", self.path)
            return None
