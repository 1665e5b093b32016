"""Printable elements produced by composition and consumed by renderers."""

import copy
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class TextElement:
    type: ClassVar[str] = "text"
    text: str
    align: Optional[str] = None
    flex: Optional[int] = None
    style: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({'type': self.type, 'text': self.text, 'align': self.align,
                         'style': self.style, 'flex': self.flex})


@dataclass(frozen=True)
class BarcodeElement:
    type: ClassVar[str] = "barcode"
    code: str
    barcode_type: Optional[str] = None
    flex: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({'type': self.type, 'code': self.code,
                         'barcode_type': self.barcode_type, 'flex': self.flex})


@dataclass(frozen=True)
class RowElement:
    """Horizontal group; children stay nested rather than flattened."""
    type: ClassVar[str] = "row"
    children: Tuple["PrintableElement", ...] = ()
    flex: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({'type': self.type,
                         'children': [child.to_dict() for child in self.children],
                         'flex': self.flex})


@dataclass(frozen=True)
class PassthroughElement:
    """Unrecognised row copied verbatim, e.g. ``picture`` or ``horizontalline``."""
    payload: Dict[str, Any]

    @property
    def type(self) -> Optional[str]:
        return self.payload.get('type')

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.payload)


PrintableElement = Union[TextElement, BarcodeElement, RowElement, PassthroughElement]


def element_from_dict(raw: Mapping[str, Any]) -> PrintableElement:
    """Rebuild an element from its ``to_dict()`` form."""
    element_type = raw.get('type')
    if element_type == 'text':
        return TextElement(text=raw.get('text', ''), align=raw.get('align'),
                           flex=raw.get('flex'), style=raw.get('style'))
    if element_type == 'barcode':
        return BarcodeElement(code=raw.get('code', ''), barcode_type=raw.get('barcode_type'),
                              flex=raw.get('flex'))
    if element_type == 'row':
        return RowElement(children=tuple(element_from_dict(child)
                                         for child in raw.get('children') or []),
                          flex=raw.get('flex'))
    return PassthroughElement(payload=copy.deepcopy(dict(raw)))


def elements_to_dicts(elements: List[PrintableElement]) -> List[Dict[str, Any]]:
    return [element.to_dict() for element in elements]
