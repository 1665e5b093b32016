"""Text-formatting operators applied to resolved placeholder values."""

import json
import logging
import math
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from dateutil.parser import parse as date_parse

from ..config import DEFAULT_DATETIME_FORMAT
from .paths import MISSING, UnresolvedPath

logger = logging.getLogger(__name__)

_WIDTH_PATTERN = re.compile(r'^\s*([+-]?\d+)')
_DIGIT_PATTERN = re.compile(r'\d')

# fields missing from date text are taken from here, never from today's date
_DATE_DEFAULT = datetime(1970, 1, 1)


def stringify(value: Any) -> str:
    """Render a data value the way it appears in JSON-sourced receipt text."""
    if value is None or value is MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(',', ':'), ensure_ascii=False, default=str)
    return str(value)


def unquote(text: str) -> str:
    """Strip one pair of matching single or double quotes."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def split_args(arg: Optional[str]) -> List[str]:
    """Split a comma separated operator argument into cleaned components."""
    if arg is None:
        return []
    return [unquote(part.strip()) for part in arg.split(',')]


def parse_width(text: str) -> Optional[int]:
    """Read a leading integer, mirroring lenient parseInt behaviour."""
    match = _WIDTH_PATTERN.match(text)
    if not match:
        return None
    return int(match.group(1))


def pad_text(text: str, width: int, fill: str, left: bool) -> str:
    """Pad ``text`` to ``width`` characters, repeating ``fill`` as needed."""
    needed = width - len(text)
    if needed <= 0 or not fill:
        return text
    filler = (fill * (needed // len(fill) + 1))[:needed]
    return filler + text if left else text + filler


class BaseOperator(ABC):
    """Base class for placeholder operators."""

    def __init__(self, name: str):
        """
        Initialize operator.

        Args:
            name: Name used in templates, e.g. ``padLeft``
        """
        self.name = name
        self.logger = logging.getLogger(f"{self.__class__.__name__}")

    @abstractmethod
    def apply(self, value: Any, arg: Optional[str]) -> Any:
        """
        Transform the current value.

        Args:
            value: Value produced by the previous pipeline step
            arg: Raw argument text after the colon, or None

        Returns:
            The new value
        """
        pass


class DefaultOperator(BaseOperator):
    """``default:val`` - substitute a literal when the value is unresolved or empty."""

    def __init__(self):
        super().__init__("default")

    def apply(self, value: Any, arg: Optional[str]) -> Any:
        if value is None or value is MISSING or isinstance(value, UnresolvedPath) \
                or stringify(value) == "":
            return unquote(arg.strip()) if arg is not None else None
        return value


class PadOperator(BaseOperator):
    """``padLeft:width[,char]`` and ``padRight:width[,char]``."""

    def __init__(self, name: str, left: bool):
        super().__init__(name)
        self.left = left

    def apply(self, value: Any, arg: Optional[str]) -> Any:
        args = split_args(arg)
        width = parse_width(args[0]) if args else None
        if width is None or value is None:
            return value

        fill = args[1] if len(args) > 1 and args[1] else " "
        return pad_text(stringify(value), width, fill, self.left)


class FitOperator(BaseOperator):
    """``fit:width[,align]`` - truncate or pad to an exact column width."""

    def __init__(self):
        super().__init__("fit")

    def apply(self, value: Any, arg: Optional[str]) -> Any:
        args = split_args(arg)
        width = parse_width(args[0]) if args else None
        if width is None or value is None:
            return value

        text = stringify(value)
        if width <= 0:
            return ""
        if len(text) > width:
            return text[:width]

        align = args[1] if len(args) > 1 else "left"
        pad = width - len(text)
        if align == "right":
            return " " * pad + text
        if align == "center":
            left = pad // 2
            return " " * left + text + " " * (pad - left)
        return text + " " * pad


class FormatOperator(BaseOperator):
    """``format:datetime`` - reformat a parseable date/time value."""

    def __init__(self, datetime_format: str = DEFAULT_DATETIME_FORMAT):
        super().__init__("format")
        self.datetime_format = datetime_format

    def apply(self, value: Any, arg: Optional[str]) -> Any:
        kind = arg.strip() if arg is not None else None
        if kind != "datetime" or not value or isinstance(value, UnresolvedPath):
            return value

        parsed = self._to_datetime(value)
        if parsed is None:
            self.logger.debug(f"Could not parse {value!r} as datetime, leaving unchanged")
            return value
        return parsed.strftime(self.datetime_format)

    def _to_datetime(self, value: Any) -> Optional[datetime]:
        """Interpret strings as date text and numbers as epoch milliseconds."""
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, bool):
            return None
        elif isinstance(value, (int, float)):
            try:
                return datetime.fromtimestamp(value / 1000)
            except (OverflowError, OSError, ValueError):
                return None
        elif isinstance(value, str):
            if not _DIGIT_PATTERN.search(value):
                return None
            try:
                parsed = date_parse(value, default=_DATE_DEFAULT)
            except (ValueError, OverflowError):
                return None
        else:
            return None

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone()
        return parsed


class OperatorPipeline:
    """Registry of named operators, applied left to right to a value."""

    def __init__(self, datetime_format: str = DEFAULT_DATETIME_FORMAT):
        """Initialize with the built-in operators."""
        self.datetime_format = datetime_format
        self.operators: Dict[str, BaseOperator] = {}
        self._load_builtin_operators()

    def _load_builtin_operators(self):
        """Register default, padLeft, padRight, fit and format."""
        for operator in [
            DefaultOperator(),
            PadOperator("padLeft", left=True),
            PadOperator("padRight", left=False),
            FitOperator(),
            FormatOperator(self.datetime_format),
        ]:
            self.operators[operator.name] = operator

    def add_operator(self, operator: BaseOperator):
        """Add or replace an operator."""
        if not isinstance(operator, BaseOperator):
            raise ValueError("Operator must inherit from BaseOperator")

        self.operators[operator.name] = operator
        logger.info(f"Added custom operator: {operator.name}")

    def get_operator_by_name(self, name: str) -> Optional[BaseOperator]:
        return self.operators.get(name)

    @staticmethod
    def parse_operations(text: str) -> List[Tuple[str, Optional[str]]]:
        """
        Parse a ``| op:arg | op`` suffix into (name, arg) pairs.

        Args:
            text: Operator suffix as captured from a placeholder token

        Returns:
            Operations in declared order; arg is None when no colon is given
        """
        operations = []
        for chunk in text.split('|'):
            chunk = chunk.strip()
            if not chunk:
                continue
            name, sep, arg = chunk.partition(':')
            operations.append((name.strip(), arg if sep else None))
        return operations

    def run(self, value: Any, operations: List[Tuple[str, Optional[str]]]) -> Any:
        """Apply operations in order; unknown names leave the value untouched."""
        for name, arg in operations:
            operator = self.operators.get(name)
            if operator is None:
                logger.debug(f"Unknown operator '{name}' ignored")
                continue
            value = operator.apply(value, arg)
        return value
