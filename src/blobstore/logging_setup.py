"""Console logging for the BlobStore CLI.

The library modules only create loggers; handlers are installed here, and
only by the CLI. Embedding hosts configure logging their own way.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Attach a rich console handler to the ``blobstore`` logger.

    Args:
        verbose: Log DEBUG events instead of WARNING and above
        console: Console to write to (defaults to stderr)
    """
    level = logging.DEBUG if verbose else logging.WARNING

    package_logger = logging.getLogger("blobstore")
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=verbose,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(level)
    package_logger.addHandler(handler)
    package_logger.propagate = False
