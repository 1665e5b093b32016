"""Receipt Composer - turn declarative receipt layouts and data into printable elements."""

__version__ = "1.0.0"
__author__ = "Receipt Composer Team"
__email__ = ""

from .config import EmptyValuePolicy, EngineSettings
from .templates import OperatorPipeline, PlaceholderExpander, resolve_path
from .document import (
    CompositionDepthError,
    CompositionError,
    CyclicReferenceError,
    DocumentComposer,
    Layout,
    LayoutRegistry,
)
from .builder import BuildResult, ReceiptBuilder, build_receipt
from .codec import ReceiptCodecError, decode_elements, encode_elements

__all__ = [
    'EmptyValuePolicy',
    'EngineSettings',
    'OperatorPipeline',
    'PlaceholderExpander',
    'resolve_path',
    'CompositionDepthError',
    'CompositionError',
    'CyclicReferenceError',
    'DocumentComposer',
    'Layout',
    'LayoutRegistry',
    'BuildResult',
    'ReceiptBuilder',
    'build_receipt',
    'ReceiptCodecError',
    'decode_elements',
    'encode_elements',
]
