"""Recursive evaluation of receipt layouts into printable elements."""

import copy
import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from ..config import EngineSettings
from ..templates.operators import OperatorPipeline
from ..templates.paths import resolve_path
from ..templates.placeholder import PlaceholderExpander
from .elements import BarcodeElement, PassthroughElement, PrintableElement, RowElement, TextElement
from .rows import (
    BarcodeRow,
    GroupRow,
    IteratorRow,
    Layout,
    PassthroughRow,
    Row,
    SectionRefRow,
    TextRow,
)

logger = logging.getLogger(__name__)


class CompositionError(RuntimeError):
    """Layout structure prevents composition from finishing."""


class CyclicReferenceError(CompositionError):
    """A sectionref points back at a section that is still being expanded."""

    def __init__(self, chain: Sequence[str]):
        self.chain = tuple(chain)
        super().__init__(f"Cyclic section reference: {' -> '.join(self.chain)}")


class CompositionDepthError(CompositionError):
    """Nesting of rows, iterators and sections exceeded the configured limit."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"Receipt layout nested deeper than {max_depth} levels")


class DocumentComposer:
    """
    Walks section rows and produces the flat, ordered element list.

    Holds no per-call state, so one composer may serve many threads.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        """
        Initialize composer.

        Args:
            settings: Engine settings; defaults are used if omitted
        """
        self.settings = settings or EngineSettings()
        self.expander = PlaceholderExpander(
            pipeline=OperatorPipeline(datetime_format=self.settings.datetime_format),
            empty_value_policy=self.settings.empty_value_policy,
        )

    def compose(self,
                layout: Layout,
                data: Any,
                registry: Mapping[str, Layout],
                section_chain: Tuple[str, ...] = ()) -> List[PrintableElement]:
        """
        Compose one layout against a data context.

        Args:
            layout: Section to evaluate
            data: Data context placeholders resolve against
            registry: All sections, for sectionref lookups
            section_chain: Names of sections currently being expanded

        Returns:
            Elements in declared order, with iterator and sectionref output
            spliced in place
        """
        if layout.name and layout.name not in section_chain:
            section_chain = section_chain + (layout.name,)
        return self._compose_rows(layout.rows, data, registry, section_chain, depth=0)

    def _compose_rows(self,
                      rows: Sequence[Row],
                      data: Any,
                      registry: Mapping[str, Layout],
                      section_chain: Tuple[str, ...],
                      depth: int) -> List[PrintableElement]:
        max_depth = self.settings.max_depth
        if max_depth is not None and depth > max_depth:
            raise CompositionDepthError(max_depth)

        elements: List[PrintableElement] = []
        for row in rows:
            if isinstance(row, TextRow):
                elements.append(TextElement(
                    text=self.expander.expand(row.text, data),
                    align=row.align,
                    flex=row.flex,
                    style=row.style,
                ))

            elif isinstance(row, BarcodeRow):
                elements.append(BarcodeElement(
                    code=self.expander.expand(row.code, data),
                    barcode_type=row.barcode_type,
                ))

            elif isinstance(row, GroupRow):
                children = self._compose_rows(row.children, data, registry,
                                              section_chain, depth + 1)
                elements.append(RowElement(children=tuple(children)))

            elif isinstance(row, IteratorRow):
                items = resolve_path(data, row.path)
                if not isinstance(items, list):
                    logger.debug(f"Iterator path '{row.path}' is not a list, skipping")
                    continue
                for item in items:
                    elements.extend(self._compose_rows(row.rows, item, registry,
                                                       section_chain, depth + 1))

            elif isinstance(row, SectionRefRow):
                section = registry.get(row.ref)
                if section is None:
                    continue
                if self.settings.detect_cycles and row.ref in section_chain:
                    raise CyclicReferenceError(section_chain + (row.ref,))
                elements.extend(self._compose_rows(section.rows, data, registry,
                                                   section_chain + (row.ref,), depth + 1))

            elif isinstance(row, PassthroughRow):
                elements.append(PassthroughElement(payload=copy.deepcopy(row.payload)))

            else:
                raise TypeError(f"Unsupported row object: {row!r}")

        return elements
