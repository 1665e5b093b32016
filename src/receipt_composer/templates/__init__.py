"""Placeholder templating: path lookup, operators and token expansion."""

from .paths import MISSING, UnresolvedPath, resolve_path
from .operators import BaseOperator, OperatorPipeline
from .placeholder import PlaceholderExpander

__all__ = [
    'MISSING', 'UnresolvedPath', 'resolve_path',
    'BaseOperator', 'OperatorPipeline', 'PlaceholderExpander',
]
