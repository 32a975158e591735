"""Filesystem helpers for stackinit."""

import logging
import os
import shutil
from typing import Iterable, List

from rich.console import Console


class FileSystemService:
    """Encapsulates file and directory removal side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def remove_files(self, root: str, names: Iterable[str]) -> List[str]:
        removed: List[str] = []
        for name in names:
            path = os.path.join(root, name)
            if not os.path.isfile(path):
                self.logger.debug("Nothing to remove at %s", path)
                continue
            try:
                os.remove(path)
            except OSError as exc:
                message = f"Warning: Could not remove {path}: {exc}"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)
                continue
            removed.append(name)
            self.logger.debug("Removed file: %s", path)
        return removed

    def cleanup_dir(self, path: str) -> bool:
        if not os.path.exists(path):
            return False
        try:
            shutil.rmtree(path)
        except Exception as exc:
            message = f"Warning: Could not remove {path}: {exc}"
            self.console.print(f"[yellow]{message}[/yellow]")
            self.logger.warning(message)
            return False
        self.logger.debug("Removed directory: %s", path)
        return True
