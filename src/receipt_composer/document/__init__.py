"""Receipt document model and composition."""

from .rows import Layout, LayoutRegistry, parse_row
from .elements import (
    BarcodeElement,
    PassthroughElement,
    PrintableElement,
    RowElement,
    TextElement,
    element_from_dict,
)
from .composer import CompositionDepthError, CompositionError, CyclicReferenceError, DocumentComposer

__all__ = [
    'Layout', 'LayoutRegistry', 'parse_row',
    'BarcodeElement', 'PassthroughElement', 'PrintableElement', 'RowElement', 'TextElement',
    'element_from_dict',
    'CompositionDepthError', 'CompositionError', 'CyclicReferenceError', 'DocumentComposer',
]
