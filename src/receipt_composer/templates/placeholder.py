"""Expansion of ``{{ path | op:arg }}`` placeholders in receipt templates."""

import logging
import re
from typing import Any, Optional

from ..config import EmptyValuePolicy
from .operators import OperatorPipeline, stringify
from .paths import MISSING, UnresolvedPath, resolve_path

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(
    r'\{\{\s*([\w.]+)((?:\s*\|\s*\w+(?::[^|}]+)?)*)\s*\}\}'
)


class PlaceholderExpander:
    """Substitutes every placeholder token in a template string."""

    def __init__(self,
                 pipeline: Optional[OperatorPipeline] = None,
                 empty_value_policy: EmptyValuePolicy = EmptyValuePolicy.KEEP_TOKEN):
        """
        Initialize expander.

        Args:
            pipeline: Operator pipeline; a default one is created if omitted
            empty_value_policy: Replacement used when a token ends up empty
        """
        self.pipeline = pipeline or OperatorPipeline()
        self.empty_value_policy = empty_value_policy

    def expand(self, template: Any, data: Any) -> str:
        """
        Expand all tokens in ``template`` against ``data``.

        A path that does not resolve is rendered as its own dotted name unless
        a ``default`` operator supplies something else.
        """
        if template is None:
            return ""
        text = template if isinstance(template, str) else stringify(template)

        def replace(match: re.Match) -> str:
            path, suffix = match.group(1), match.group(2)
            value = resolve_path(data, path)
            if value is MISSING:
                value = UnresolvedPath(path)

            if suffix and suffix.strip():
                value = self.pipeline.run(value, self.pipeline.parse_operations(suffix))

            rendered = stringify(value)
            if rendered:
                return rendered
            if self.empty_value_policy is EmptyValuePolicy.KEEP_TOKEN:
                return match.group(0)
            return ""

        return PLACEHOLDER_PATTERN.sub(replace, text)
