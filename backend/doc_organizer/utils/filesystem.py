import logging
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from doc_organizer.errors import FileMoveError, FileOperationError
from doc_organizer.models.category import Category

logger = logging.getLogger("doc_organizer.files")

UPLOADS_DIRNAME = "uploads"
STAGING_DIRNAME = "_temp"
CHUNK_SIZE = 1024 * 1024


def sanitize_filename(name: str) -> str:
    lowered = re.sub(r"[^a-z0-9.]", "_", name.lower())
    return re.sub(r"_+", "_", lowered)


@dataclass
class StagedFile:
    path: Path
    filename: str
    original_filename: str
    size: int
    truncated: bool = False


class CategoryFileStore:
    """On-disk layout: one directory per category under <root>/uploads.

    Incoming uploads land in <root>/uploads/_temp first and are renamed into
    their category directory once the category is known.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    @property
    def uploads_dir(self) -> Path:
        return self.root / UPLOADS_DIRNAME

    @property
    def staging_dir(self) -> Path:
        return self.uploads_dir / STAGING_DIRNAME

    def ensure_directories(self) -> Path:
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        self.staging_dir.mkdir(exist_ok=True)
        for category in Category:
            self.ensure_category_directory(category)
        return self.uploads_dir

    def ensure_category_directory(self, category: Category) -> Path:
        category_dir = self.uploads_dir / Category(category).value
        category_dir.mkdir(parents=True, exist_ok=True)
        return category_dir

    def generate_filename(self, original_name: str) -> str:
        timestamp = int(time.time() * 1000)
        return f"{timestamp}_{sanitize_filename(original_name)}"

    def relative_path(self, category: Category, filename: str) -> str:
        return f"{UPLOADS_DIRNAME}/{Category(category).value}/{filename}"

    def category_path(self, category: Category, filename: str) -> Path:
        return self.uploads_dir / Category(category).value / filename

    def full_path(self, relative_path: str) -> Path:
        path = (self.root / relative_path).resolve()
        if not path.is_relative_to(self.root.resolve()):
            logger.warning("Rejected path outside storage root: %s", relative_path)
            raise FileOperationError("Invalid storage path")
        return path

    # -- staging ---------------------------------------------------------

    def stage(self, source: BinaryIO, original_name: str, max_bytes: int) -> StagedFile:
        """Stream ``source`` into the staging area.

        Reading stops once more than ``max_bytes`` have been seen, so an
        oversized upload never lands on disk in full.
        """
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        filename = self.generate_filename(original_name)
        path = self.staging_dir / filename
        size = 0
        truncated = False
        try:
            with path.open("wb") as out:
                while True:
                    chunk = source.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        truncated = True
                        break
                    out.write(chunk)
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise FileOperationError("Failed to store uploaded file") from exc
        return StagedFile(
            path=path,
            filename=filename,
            original_filename=original_name,
            size=size,
            truncated=truncated,
        )

    def discard(self, staged: StagedFile) -> bool:
        try:
            if staged.path.exists():
                staged.path.unlink()
                return True
        except OSError as exc:
            logger.warning("Could not clean up staged file %s: %s", staged.path, exc)
        return False

    # -- placement -------------------------------------------------------

    def place(self, temp_path: Path, category: Category, filename: str) -> str:
        """Rename a staged file into its category directory.

        Returns the relative path. On failure the staged file is left where
        it was.
        """
        destination = self.ensure_category_directory(category) / filename
        if destination.exists():
            logger.warning("Refusing to overwrite %s", destination)
            raise FileMoveError("A file with the same name already exists in the category folder")
        try:
            os.rename(temp_path, destination)
        except OSError as exc:
            raise FileMoveError("Failed to move uploaded file to category folder") from exc
        logger.info("Placed %s into %s", filename, Category(category).value)
        return self.relative_path(category, filename)

    def move(self, old_category: Category, new_category: Category, filename: str) -> bool:
        source = self.category_path(old_category, filename)
        if not source.exists():
            logger.warning("Cannot move %s: not found in %s", filename, Category(old_category).value)
            return False
        destination = self.ensure_category_directory(new_category) / filename
        if destination.exists():
            logger.warning("Refusing to overwrite %s", destination)
            raise FileMoveError("A file with the same name already exists in the category folder")
        try:
            os.rename(source, destination)
        except OSError as exc:
            raise FileMoveError("Failed to move file to new category") from exc
        logger.info(
            "Moved %s from %s to %s",
            filename, Category(old_category).value, Category(new_category).value,
        )
        return True

    def delete(self, relative_path: str) -> bool:
        path = self.full_path(relative_path)
        if not path.exists():
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", relative_path, exc)
            raise FileOperationError("Failed to delete file") from exc
        logger.info("Deleted %s", relative_path)
        return True

    # -- inspection ------------------------------------------------------

    def exists(self, relative_path: str) -> bool:
        try:
            return self.full_path(relative_path).is_file()
        except FileOperationError:
            return False

    def size(self, relative_path: str) -> int:
        try:
            return self.full_path(relative_path).stat().st_size
        except (OSError, FileOperationError):
            return 0

    def list_files(self) -> dict[str, list[str]]:
        listing: dict[str, list[str]] = {}
        if not self.uploads_dir.exists():
            return listing
        for entry in sorted(self.uploads_dir.iterdir()):
            if entry.is_dir():
                listing[entry.name] = sorted(p.name for p in entry.iterdir() if p.is_file())
        return listing
