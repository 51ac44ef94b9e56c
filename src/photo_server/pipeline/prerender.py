"""Background thumbnail pre-rendering."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .. import mutex, thumb
from ..core.config import Config, get_config
from ..core.logger import get_logger
from ..mutex import BusyError
from ..utils.file_utils import FileUtils

logger = get_logger(__name__)


@dataclass
class PrerenderResult:
    """Outcome of one pre-rendering run."""
    files: int = 0
    thumbnails: int = 0
    errors: List[str] = field(default_factory=list)
    canceled: bool = False


def _render_order() -> List[str]:
    """Type names with their source types first."""
    ordered: List[str] = []

    def visit(name: str) -> None:
        if name in ordered:
            return
        source = thumb.TYPES[name].source
        if source:
            visit(source)
        ordered.append(name)

    for name in thumb.TYPES:
        visit(name)

    return ordered


def prerender_file(config: Config, image_path: Path) -> int:
    """Render all pre-rendered thumbnail types of one image.

    Types with a source are scaled from the already rendered source thumbnail
    instead of the original.
    """
    file_hash = FileUtils.calculate_file_hash(image_path)
    thumb_path = config.thumb_path()
    rendered: Dict[str, Path] = {}

    for name in _render_order():
        thumb_type = thumb.TYPES[name]
        if thumb_type.skip_pre_render() or thumb_type.exceeds_limit():
            continue

        source_path = rendered.get(thumb_type.source, image_path)
        rendered[name] = thumb.from_file(
            source_path, file_hash, thumb_path,
            thumb_type.width, thumb_type.height, *thumb_type.options
        )

    return len(rendered)


async def prerender_thumbnails(config: Optional[Config] = None) -> PrerenderResult:
    """Render thumbnails for every image in the originals directory.

    Images are processed in batches of ``config.workers()`` threads. Raises
    ``BusyError`` if another job holds the worker flag.
    """
    config = config or get_config()
    result = PrerenderResult()

    mutex.worker.start()
    try:
        files = list(FileUtils.find_images(config.originals_path()))
        batch_size = config.workers()

        logger.info(f"Rendering thumbnails for {len(files)} files with {batch_size} workers")

        for i in range(0, len(files), batch_size):
            if mutex.worker.canceled():
                logger.info("Thumbnail rendering canceled")
                result.canceled = True
                break

            batch = files[i:i + batch_size]
            batch_results = await asyncio.gather(
                *[asyncio.to_thread(prerender_file, config, path) for path in batch],
                return_exceptions=True,
            )

            for path, batch_result in zip(batch, batch_results):
                if isinstance(batch_result, Exception):
                    logger.error(f"Failed to render thumbnails for {path}: {batch_result}")
                    result.errors.append(f"{path}: {batch_result}")
                else:
                    result.files += 1
                    result.thumbnails += batch_result
    finally:
        mutex.worker.stop()

    logger.info(
        f"Rendered {result.thumbnails} thumbnails for {result.files} files "
        f"({len(result.errors)} errors)"
    )
    return result


async def run_workers(config: Optional[Config] = None) -> None:
    """Run background jobs every wakeup interval until cancelled."""
    config = config or get_config()
    interval = config.wakeup_interval().total_seconds()

    logger.info(f"Starting background workers, wakeup interval {interval:.0f}s")

    while True:
        await asyncio.sleep(interval)

        try:
            await prerender_thumbnails(config)
        except BusyError as e:
            logger.info(f"Skipping thumbnail rendering: {e}")
        except OSError as e:
            logger.error(f"Thumbnail rendering failed: {e}")
