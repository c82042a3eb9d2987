"""Cross-cutting utilities (lowest dependency layer).

    fs              atomic artifact writes, YAML loading
    logging_config  handler setup and contextual log fields

Nothing in utils/ imports from the rest of the package.
"""

from . import fs
from . import logging_config

from .logging_config import log_context, push_context, setup_logging

__all__ = [
    'fs',
    'logging_config',
    'log_context',
    'push_context',
    'setup_logging',
]
