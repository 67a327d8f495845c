"""
Filesystem-backed binary store for wallpaper originals.

Blobs are addressed by a generated relative path (never by client input) under
a configured root. The store owns file existence only; metadata lives in the
catalog tables.
"""
import logging
import mimetypes
import os
import shutil
import uuid
from typing import BinaryIO

WALLPAPERS_SUBDIR = "wallpapers"
INCOMING_SUBDIR = ".incoming"


def validate_path_within_base(candidate: str, base: str) -> None:
    cand_abs = os.path.abspath(candidate)
    base_abs = os.path.abspath(base)
    try:
        common = os.path.commonpath([cand_abs, base_abs])
    except ValueError:
        raise ValueError("invalid destination path")
    if common != base_abs:
        raise ValueError("destination escapes base directory")


def extension_for_mime(mime_type: str | None) -> str:
    ext = mimetypes.guess_extension((mime_type or "").split(";", 1)[0].strip(), strict=False)
    if not ext or len(ext) > 16:
        return ""
    return ".jpg" if ext in (".jpe", ".jpeg") else ext


class BinaryStore:
    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    @property
    def incoming_dir(self) -> str:
        """Scratch area for buffered uploads; same filesystem as the blobs."""
        path = os.path.join(self.root, INCOMING_SUBDIR)
        os.makedirs(path, exist_ok=True)
        return path

    def resolve(self, rel_path: str) -> str:
        """Map a stored relative path back to an absolute one inside the root."""
        if not rel_path or os.path.isabs(rel_path):
            raise ValueError("stored path must be relative")
        abs_path = os.path.abspath(os.path.join(self.root, *rel_path.split("/")))
        validate_path_within_base(abs_path, self.root)
        return abs_path

    def put(self, src_path: str, mime_type: str | None = None) -> str:
        """Move a buffered file into the store. Returns the relative key to persist."""
        name = uuid.uuid4().hex
        rel_path = f"{WALLPAPERS_SUBDIR}/{name}{extension_for_mime(mime_type)}"
        dest_abs = self.resolve(rel_path)
        os.makedirs(os.path.dirname(dest_abs), exist_ok=True)
        shutil.move(src_path, dest_abs)
        return rel_path

    def open(self, rel_path: str) -> BinaryIO:
        return open(self.resolve(rel_path), "rb")

    def exists(self, rel_path: str) -> bool:
        try:
            return os.path.isfile(self.resolve(rel_path))
        except ValueError:
            return False

    def delete(self, rel_path: str) -> bool:
        """Remove a stored blob.

        Idempotent: a path that is already gone is logged and reported as success.
        Returns False only when the file exists but could not be removed, or the
        path is not a valid store key.
        """
        try:
            abs_path = self.resolve(rel_path)
        except ValueError:
            logging.warning("Refusing to delete invalid store path %r", rel_path)
            return False
        try:
            os.remove(abs_path)
        except FileNotFoundError:
            logging.warning("Binary %s was already absent; treating delete as done", rel_path)
            return True
        except OSError:
            logging.exception("Failed to delete binary %s", rel_path)
            return False
        return True


_STORE: BinaryStore | None = None


def init_storage(root: str) -> BinaryStore:
    global _STORE
    os.makedirs(root, exist_ok=True)
    _STORE = BinaryStore(root)
    return _STORE


def get_store() -> BinaryStore:
    if _STORE is None:
        raise RuntimeError("Binary store is not initialized; call init_storage() first.")
    return _STORE
