"""Declarative receipt layouts: rows, sections and the section registry."""

import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextRow:
    """A line of text; ``text`` may contain placeholders."""
    type: ClassVar[str] = "text"
    text: Any = ""
    align: Optional[str] = None
    flex: Optional[int] = None
    style: Optional[str] = None


@dataclass(frozen=True)
class BarcodeRow:
    """A barcode whose ``code`` may contain placeholders."""
    type: ClassVar[str] = "barcode"
    code: Any = ""
    barcode_type: Optional[str] = None


@dataclass(frozen=True)
class GroupRow:
    """Horizontal group of child rows (``type: row``)."""
    type: ClassVar[str] = "row"
    children: Tuple["Row", ...] = ()


@dataclass(frozen=True)
class IteratorRow:
    """Repeats ``rows`` once per item of the list found at ``path``."""
    type: ClassVar[str] = "iterator"
    path: str = ""
    rows: Tuple["Row", ...] = ()


@dataclass(frozen=True)
class SectionRefRow:
    """Inlines the section named ``ref``."""
    type: ClassVar[str] = "sectionref"
    ref: str = ""


@dataclass(frozen=True)
class PassthroughRow:
    """Any other row type, emitted as-is (pictures, page breaks, lines...)."""
    payload: Dict[str, Any]

    @property
    def type(self) -> Optional[str]:
        return self.payload.get('type')


Row = Union[TextRow, BarcodeRow, GroupRow, IteratorRow, SectionRefRow, PassthroughRow]


def parse_row(raw: Mapping[str, Any]) -> Row:
    """
    Convert one JSON row object into its typed form.

    Args:
        raw: Row mapping with a ``type`` key

    Returns:
        The matching row variant; unknown types become PassthroughRow
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"Row must be a mapping, got {type(raw).__name__}")

    row_type = raw.get('type')
    if row_type == 'text':
        return TextRow(text=raw.get('text', ''), align=raw.get('align'),
                       flex=raw.get('flex'), style=raw.get('style'))
    if row_type == 'barcode':
        return BarcodeRow(code=raw.get('code', ''), barcode_type=raw.get('barcode_type'))
    if row_type == 'row':
        return GroupRow(children=parse_rows(raw.get('children')))
    if row_type == 'iterator':
        return IteratorRow(path=str(raw.get('path') or ''), rows=parse_rows(raw.get('rows')))
    if row_type == 'sectionref':
        return SectionRefRow(ref=str(raw.get('ref') or ''))

    return PassthroughRow(payload=copy.deepcopy(dict(raw)))


def parse_rows(raw_rows: Optional[List[Mapping[str, Any]]]) -> Tuple[Row, ...]:
    if not raw_rows:
        return ()
    return tuple(parse_row(raw) for raw in raw_rows)


@dataclass(frozen=True)
class Layout:
    """One named section of a receipt."""
    rows: Tuple[Row, ...] = ()
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Union[Mapping[str, Any], List[Any], None],
                  name: Optional[str] = None) -> "Layout":
        """Parse a section mapping; a section without ``rows`` is empty."""
        if isinstance(raw, list):
            return cls(rows=parse_rows(raw), name=name)
        if not raw:
            return cls(name=name)
        return cls(rows=parse_rows(raw.get('rows')), name=name)


class LayoutRegistry(Mapping):
    """Read-only mapping of section name to Layout."""

    def __init__(self, layouts: Optional[Mapping[str, Layout]] = None):
        self._layouts: Dict[str, Layout] = dict(layouts or {})

    def __getitem__(self, name: str) -> Layout:
        return self._layouts[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._layouts)

    def __len__(self) -> int:
        return len(self._layouts)

    def __repr__(self) -> str:
        return f"LayoutRegistry({list(self._layouts)})"

    def names(self) -> List[str]:
        """Section names in declaration order."""
        return list(self._layouts)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "LayoutRegistry":
        """
        Build a registry from a JSON-compatible mapping.

        Args:
            raw: Mapping of section name to section object (or to a ready Layout)

        Returns:
            Parsed registry
        """
        if isinstance(raw, LayoutRegistry):
            return raw
        if not isinstance(raw, Mapping):
            raise ValueError("Layout registry must be a mapping of section names")

        layouts = {}
        for name, section in raw.items():
            if section is None:
                # a null entry counts as an undefined section
                logger.debug(f"Section '{name}' is null, leaving it undefined")
                continue
            if isinstance(section, Layout):
                layouts[name] = section
            else:
                layouts[name] = Layout.from_dict(section, name=name)
        return cls(layouts)

    @classmethod
    def from_file(cls, config_path: Path) -> "LayoutRegistry":
        """Load a registry from a JSON or YAML file."""
        config_path = Path(config_path)
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.suffix.lower() == '.json':
                raw = json.load(f)
            else:
                raw = yaml.safe_load(f)

        registry = cls.from_dict(raw or {})
        logger.info(f"Loaded {len(registry)} receipt sections from {config_path}")
        return registry
