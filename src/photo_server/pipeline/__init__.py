"""Background processing jobs."""

from .prerender import PrerenderResult, prerender_file, prerender_thumbnails, run_workers

__all__ = [
    'PrerenderResult',
    'prerender_file',
    'prerender_thumbnails',
    'run_workers',
]
