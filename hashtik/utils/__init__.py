"""Cross-cutting utilities (lowest dependency layer).

    - Atomic I/O and YAML (fs)
    - Unified logging (logging_config)

No module in utils/ may import from other hashtik subpackages.

Convenience imports:
    from hashtik.utils import fs
    from hashtik.utils.logging_config import setup_logging, get_logger
"""

from . import fs
from . import logging_config
from .logging_config import get_logger, pop_context, push_context, setup_logging

__all__ = [
    'fs',
    'logging_config',
    'setup_logging',
    'get_logger',
    'push_context',
    'pop_context',
]
