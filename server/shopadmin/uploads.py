"""Product image storage on the local filesystem."""

import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from .errors import NotFoundError, ValidationError


logger = logging.getLogger(__name__)


class UploadStorage:
    """Stores uploaded images under random names in a single directory."""

    def __init__(
        self,
        directory: str,
        max_bytes: int,
        allowed_extensions: Sequence[str],
        public_prefix: str = "/uploads",
    ):
        self.directory = Path(directory)
        self.max_bytes = max_bytes
        self.allowed_extensions = [ext.lower().lstrip(".") for ext in allowed_extensions]
        self.public_prefix = public_prefix.rstrip("/")
        self.directory.mkdir(parents=True, exist_ok=True)

    def _extension(self, filename: str) -> str:
        extension = os.path.splitext(filename or "")[1].lower().lstrip(".")
        if not extension or extension not in self.allowed_extensions:
            raise ValidationError(
                f"Unsupported image format. Allowed: {', '.join(self.allowed_extensions)}",
                code="UnsupportedFile",
            )
        return extension

    def _check(self, filename: str, content: bytes) -> str:
        if not filename:
            raise ValidationError("An image file is required", code="MissingFile")
        extension = self._extension(filename)
        if not content:
            raise ValidationError("Uploaded file is empty", code="EmptyFile")
        if len(content) > self.max_bytes:
            raise ValidationError(
                f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB",
                code="FileTooLarge",
            )
        return extension

    def url_for(self, stored_name: str) -> str:
        return f"{self.public_prefix}/{stored_name}"

    def save(self, filename: str, content: bytes) -> Dict[str, Any]:
        """Validate and store one file; returns its public metadata."""
        extension = self._check(filename, content)
        stored_name = f"{uuid.uuid4().hex}.{extension}"
        (self.directory / stored_name).write_bytes(content)
        logger.info(f"[uploads] Stored {filename} as {stored_name} ({len(content)} bytes)")
        return {
            "filename": stored_name,
            "originalName": filename,
            "size": len(content),
            "url": self.url_for(stored_name),
        }

    def save_many(self, files: Sequence[Tuple[str, bytes]]) -> List[Dict[str, Any]]:
        """Store every file or none of them."""
        if not files:
            raise ValidationError("At least one image file is required", code="MissingFile")
        for filename, content in files:
            self._check(filename, content)

        saved: List[Dict[str, Any]] = []
        try:
            for filename, content in files:
                saved.append(self.save(filename, content))
        except OSError:
            for entry in saved:
                (self.directory / entry["filename"]).unlink(missing_ok=True)
            raise
        return saved

    def delete(self, filename: str) -> None:
        if not filename or filename != os.path.basename(filename) or filename.startswith("."):
            raise ValidationError("Invalid filename", code="InvalidFilename")
        target = self.directory / filename
        if not target.is_file():
            raise NotFoundError("file", filename)
        target.unlink()
        logger.info(f"[uploads] Deleted {filename}")

    def info(self) -> Dict[str, Any]:
        files = [p for p in self.directory.iterdir() if p.is_file()]
        return {
            "directory": str(self.directory),
            "fileCount": len(files),
            "totalBytes": sum(p.stat().st_size for p in files),
            "maxFileBytes": self.max_bytes,
            "allowedExtensions": self.allowed_extensions,
            "publicPrefix": self.public_prefix,
        }
