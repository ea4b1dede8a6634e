"""Run a texture export session end-to-end.

`ExportSession` loads the asset manifest, builds the path registry and
semantic resolver, and exports every texture asset.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional

from tqdm import tqdm

from .config import AssetType, ExportConfig
from .core import AssetContext, DestinationFolder
from .exporter import ExportState, TextureExporter
from .manifest import load_manifest
from .registry import AssetPathRegistry
from .resolver import MaterialTextureResolver

logger = logging.getLogger("texrepack")


class ExportCancelledError(RuntimeError):
    """Raised when a user-requested cancellation is observed."""


class ExportSession:
    """Export all textures of one manifest.

    Assets are independent, so with ``max_workers > 1`` they run on a thread
    pool; each asset's read, convert, and write steps stay sequential and the
    registry serializes its own writes.
    """

    def __init__(
        self,
        config: ExportConfig,
        assets: Optional[List[AssetContext]] = None,
        resolver=None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ):
        """Build session collaborators; ``assets`` overrides the manifest."""
        self.config = config
        if assets is None:
            assets = load_manifest(config.manifest_path)
        self.registry = AssetPathRegistry(assets)
        self.resolver = resolver or MaterialTextureResolver(self.registry)
        self.destination = DestinationFolder(
            config.output_dir, overwrite=config.overwrite, dry_run=config.dry_run,
        )
        self.exporter = TextureExporter(
            self.registry, self.resolver, self.destination, config,
        )
        self.results: Dict[str, dict] = {}
        self._results_lock = threading.Lock()
        self._cancel_event = threading.Event()
        self._progress_callback = progress_callback

    def request_cancel(self):
        """Stop scheduling further assets."""
        self._cancel_event.set()

    def texture_assets(self) -> List[AssetContext]:
        """Return every texture asset in manifest order."""
        return self.registry.assets_of_type(AssetType.TEXTURE)

    def _export_one(self, asset: AssetContext) -> dict:
        try:
            result = self.exporter.export_asset(asset)
        except Exception as e:
            logger.error("Unexpected error exporting %s: %s", asset.full_path, e)
            result = {"asset": str(asset.key), "state": ExportState.DONE,
                      "history": [ExportState.NOT_STARTED, ExportState.DONE],
                      "outputs": [], "copied": False, "abandoned": [],
                      "error": str(e)}
        with self._results_lock:
            self.results[str(asset.key)] = result
        return result

    def _report_progress(self, done: int, total: int) -> None:
        if self._progress_callback is None:
            return
        try:
            self._progress_callback(done, total)
        except Exception as exc:
            logger.debug("Progress callback failed: %s", exc)

    def run(self) -> dict:
        """Export every texture asset and return a summary."""
        textures = self.texture_assets()
        total = len(textures)
        logger.info("Exporting %d texture(s) to %s%s", total, self.config.output_dir,
                    " [DRY RUN]" if self.config.dry_run else "")

        workers = min(self.config.max_workers, max(total, 1))
        done = 0
        if workers <= 1:
            for asset in tqdm(textures, desc="Textures"):
                if self._cancel_event.is_set():
                    raise ExportCancelledError("Export cancelled by user request")
                self._export_one(asset)
                done += 1
                self._report_progress(done, total)
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool, \
                    tqdm(total=total, desc="Textures") as pbar:
                futures = [pool.submit(self._export_one, a) for a in textures]
                for future in as_completed(futures):
                    future.result()
                    pbar.update(1)
                    done += 1
                    self._report_progress(done, total)
                    if self._cancel_event.is_set():
                        for f in futures:
                            f.cancel()
                        raise ExportCancelledError("Export cancelled by user request")

        summary = self.summary()
        logger.info(
            "Textures: converted=%d, copied=%d, skipped=%d, failed=%d",
            summary["exported"], summary["copied"], summary["skipped"], summary["failed"],
        )
        return summary

    def summary(self) -> dict:
        exported = copied = skipped = failed = 0
        outputs = []
        with self._results_lock:
            for res in self.results.values():
                history = res["history"]
                missing_source = ExportState.FILE_CHECKED not in history
                if ExportState.SKIPPED in history and missing_source:
                    skipped += 1
                elif res["error"] or res["abandoned"]:
                    failed += 1
                elif ExportState.SKIPPED in history:
                    skipped += 1
                if res["outputs"]:
                    exported += 1
                if res["copied"]:
                    copied += 1
                outputs.extend(res["outputs"])
        return {
            "exported": exported,
            "copied": copied,
            "skipped": skipped,
            "failed": failed,
            "outputs": sorted(outputs),
        }
