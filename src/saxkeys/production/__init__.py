"""
Production Module

Error handling, resource lifecycle management and logging setup shared by
the instrument and engine layers.
"""

from .error_handler import ErrorContext, ErrorSeverity, ProductionErrorHandler, SynthSwapError
from .logging import ColorFormatter, setup_logging
from .resource_manager import ProductionResourceManager, ResourceStatus

__all__ = [
    'ErrorContext',
    'ErrorSeverity',
    'ProductionErrorHandler',
    'SynthSwapError',
    'ColorFormatter',
    'setup_logging',
    'ProductionResourceManager',
    'ResourceStatus',
]
