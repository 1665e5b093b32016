"""Entry point: build a receipt section from a layout registry and data."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .config import EngineSettings
from .document.composer import DocumentComposer
from .document.elements import PrintableElement, elements_to_dicts
from .document.rows import LayoutRegistry

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Composed elements plus any non-fatal warnings raised on the way."""
    elements: List[PrintableElement] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings

    def to_dicts(self) -> List[Dict[str, Any]]:
        return elements_to_dicts(self.elements)


class ReceiptBuilder:
    """
    Builds printable receipt sections.

    The builder keeps no state between calls; the same instance can compose
    several print copies at once from different threads.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        """Initialize with engine settings (defaults if omitted)."""
        self.settings = settings or EngineSettings()
        self.composer = DocumentComposer(self.settings)

    def build(self,
              section_name: str,
              registry: Mapping[str, Any],
              data: Any) -> BuildResult:
        """
        Compose the named section.

        Args:
            section_name: Key of the section to print, e.g. ``StoreCopy``
            registry: Section name to section mapping (raw JSON or LayoutRegistry)
            data: Data context for placeholders and iterators

        Returns:
            BuildResult; an unknown section gives no elements and one warning
        """
        layouts = LayoutRegistry.from_dict(registry)

        layout = layouts.get(section_name)
        if layout is None:
            message = f"Receipt config not found for key: {section_name}"
            logger.warning(message)
            return BuildResult(warnings=[message])

        elements = self.composer.compose(layout, data, layouts)
        logger.debug(f"Composed section '{section_name}' into {len(elements)} elements")
        return BuildResult(elements=elements)


def build_receipt(section_name: str,
                  registry: Mapping[str, Any],
                  data: Any,
                  settings: Optional[EngineSettings] = None) -> List[PrintableElement]:
    """Compose ``section_name`` and return just the elements."""
    return ReceiptBuilder(settings).build(section_name, registry, data).elements
