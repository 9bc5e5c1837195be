import logging
import shutil
from pathlib import Path
from typing import Optional

from worklog.domain.models import generate_id

logger = logging.getLogger(__name__)


class FileStore:
    """
    Flat directory holding uploaded attachment files.

    Files are stored under generated names that keep the original
    extension, so two uploads called "screenshot.png" never collide.
    Only bare stored names are accepted; anything that would resolve
    outside the directory is rejected.
    """

    def __init__(self, root: Path | str = "data/attachments"):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        """
        Absolute path of a stored file.

        Raises:
            ValueError: If the name is not a plain file name
        """
        if not name or Path(name).name != name:
            raise ValueError(f"Invalid stored file name: {name!r}")
        return self.root / name

    def save_file(self, source: Path) -> str:
        """
        Copy a file into the store.

        Args:
            source: File to copy

        Returns:
            The generated stored name
        """
        name = f"{generate_id()}{source.suffix}"
        shutil.copyfile(source, self.path_for(name))
        logger.debug("Stored %s as %s", source, name)
        return name

    def save_bytes(self, data: bytes, original_name: str) -> str:
        """
        Write raw bytes into the store under a fresh name.

        Args:
            data: File contents
            original_name: Name whose extension is kept

        Returns:
            The generated stored name
        """
        name = f"{generate_id()}{Path(original_name).suffix}"
        self.path_for(name).write_bytes(data)
        return name

    def read_bytes(self, name: str) -> Optional[bytes]:
        """Contents of a stored file, or None if it's gone"""
        path = self.path_for(name)
        if not path.exists():
            return None
        return path.read_bytes()

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def delete(self, name: str) -> bool:
        """
        Remove a stored file.

        Returns:
            True if a file was removed, False if it didn't exist
        """
        path = self.path_for(name)
        if not path.exists():
            return False
        path.unlink()
        logger.debug("Deleted stored file %s", name)
        return True

    def __repr__(self) -> str:
        return f"FileStore({self.root})"
