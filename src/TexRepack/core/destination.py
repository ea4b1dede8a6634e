"""Destination folder that receives exported files."""

import logging
import os
import shutil
import threading

from .paths import normalize_output_name

logger = logging.getLogger("texrepack.destination")


class _AtomicOutput:
    """Writable binary stream that lands at its target only on clean exit.

    Bytes go to a temp file beside the target; ``os.replace`` publishes it
    when the ``with`` block finishes without error. Any other exit removes
    the temp file, so a partial output never exists under the target name.
    """

    def __init__(self, path: str):
        self.path = path
        self.bytes_written = 0
        self._tmp_path = f"{path}.tmp.{os.getpid()}.{threading.get_ident()}"
        self._fh = None

    def __enter__(self):
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._fh = open(self._tmp_path, "wb")
        return self

    def write(self, data: bytes) -> int:
        n = self._fh.write(data)
        self.bytes_written += n
        return n

    def __exit__(self, exc_type, exc, tb):
        try:
            self._fh.close()
            if exc_type is None and self.bytes_written > 0:
                os.replace(self._tmp_path, self.path)
                logger.debug("Wrote %s (%d bytes)", self.path, self.bytes_written)
        finally:
            if os.path.exists(self._tmp_path):
                try:
                    os.remove(self._tmp_path)
                except OSError:
                    logger.warning("Could not remove temp file %s", self._tmp_path)
        return False


class DestinationFolder:
    """Map relative output names onto a root directory."""

    def __init__(self, root: str, overwrite: bool = True, dry_run: bool = False):
        """Initialize destination rooted at ``root``."""
        self.root = root
        self.overwrite = overwrite
        self.dry_run = dry_run

    def get_target_path(self, name: str) -> str:
        """Return the absolute filesystem path for an output name."""
        return os.path.join(self.root, *normalize_output_name(name).split("/"))

    def _is_writable_target(self, target: str) -> bool:
        if self.dry_run:
            logger.info("[dry-run] would write %s", target)
            return False
        if not self.overwrite and os.path.exists(target):
            logger.info("Skipping existing output %s", target)
            return False
        return True

    def create(self, name: str):
        """Return an atomic output stream for ``name`` or None to skip."""
        target = self.get_target_path(name)
        if not self._is_writable_target(target):
            return None
        return _AtomicOutput(target)

    def copy_file(self, source_path: str, name: str) -> bool:
        """Copy ``source_path`` verbatim to ``name``; return True if copied."""
        target = self.get_target_path(name)
        if not self._is_writable_target(target):
            return False
        if os.path.abspath(source_path) == os.path.abspath(target):
            logger.debug("Source and target are the same file: %s", target)
            return False
        stream = _AtomicOutput(target)
        with open(source_path, "rb") as src, stream:
            shutil.copyfileobj(src, stream)
        if stream.bytes_written == 0:
            # Empty sources still produce an empty target.
            open(target, "wb").close()
        logger.debug("Copied %s -> %s", source_path, target)
        return True
