"""Compact binary encoding of receipt element lists.

Format (version 1)::

    header   magic 'R' 'C', version byte
    body     element count, then elements
    element  opcode, byte length, field count, fields
    field    tag, length, value bytes

All integers are unsigned LEB128 varints. Decoders skip unknown opcodes and
elements that fail to decode, so newer writers stay readable.
"""

import base64
import binascii
import json
import logging
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

from .document.elements import PrintableElement, element_from_dict

logger = logging.getLogger(__name__)

MAGIC = b'RC'
VERSION = 0x01

OP_TEXT = 0x01
OP_PICTURE = 0x02
OP_BARCODE = 0x03
OP_PAGE_BREAK = 0x04
OP_HORIZONTAL_LINE = 0x05
OP_ROW = 0x06
OP_SECTION_REF = 0x07
OP_ITERATOR = 0x08

TAG_TEXT = 1
TAG_ALIGN = 2
TAG_STYLE = 3
TAG_FLEX = 4
TAG_IMAGE_URL = 5
TAG_CODE = 6
TAG_BARCODE_TYPE = 7
TAG_REF = 8
TAG_PATH = 9
TAG_CONDITIONS = 10
TAG_CHILDREN = 11
TAG_ROWS = 12

ElementLike = Union[PrintableElement, Mapping[str, Any]]


class ReceiptCodecError(ValueError):
    """Raised for data that cannot be encoded or decoded."""


def write_varint(buf: bytearray, value: int):
    if value < 0:
        raise ReceiptCodecError(f"Negative varint not supported: {value}")
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            buf.append(byte | 0x80)
        else:
            buf.append(byte)
            return


def read_varint(data: bytes, offset: int) -> Tuple[int, int]:
    """Read a varint at ``offset``; returns (value, new offset)."""
    result = 0
    shift = 0
    while offset < len(data):
        byte = data[offset]
        offset += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, offset
        shift += 7
        if shift > 35:
            raise ReceiptCodecError("VarInt too long")
    raise ReceiptCodecError("Unexpected end of data reading varint")


def _varint_bytes(value: int) -> bytes:
    buf = bytearray()
    write_varint(buf, value)
    return bytes(buf)


def _write_field(buf: bytearray, tag: int, value: bytes):
    write_varint(buf, tag)
    write_varint(buf, len(value))
    buf.extend(value)


def _write_fields(buf: bytearray, fields: List[Tuple[int, bytes]]):
    write_varint(buf, len(fields))
    for tag, value in fields:
        _write_field(buf, tag, value)


def _read_fields(data: bytes) -> Dict[int, bytes]:
    fields: Dict[int, bytes] = {}
    if not data:
        return fields

    count, offset = read_varint(data, 0)
    for _ in range(count):
        if offset >= len(data):
            break
        tag, offset = read_varint(data, offset)
        length, offset = read_varint(data, offset)
        fields[tag] = data[offset:offset + length]
        offset += length
    return fields


def _as_dict(element: ElementLike) -> Mapping[str, Any]:
    if isinstance(element, Mapping):
        return element
    return element.to_dict()


def _str_field(tag: int, value: Any) -> Tuple[int, bytes]:
    return tag, str(value).encode('utf-8')


def _flex_field(element: Mapping[str, Any]) -> List[Tuple[int, bytes]]:
    flex = element.get('flex')
    return [(TAG_FLEX, _varint_bytes(int(flex)))] if flex is not None else []


def _encode_element(buf: bytearray, element: ElementLike):
    element = _as_dict(element)
    element_type = element.get('type')
    fields: List[Tuple[int, bytes]] = []

    if element_type == 'text':
        opcode = OP_TEXT
        fields.append(_str_field(TAG_TEXT, element.get('text', '')))
        fields.append(_str_field(TAG_ALIGN, element.get('align') or 'left'))
        if element.get('style'):
            fields.append(_str_field(TAG_STYLE, element['style']))
        fields.extend(_flex_field(element))
    elif element_type == 'picture':
        opcode = OP_PICTURE
        fields.append(_str_field(TAG_IMAGE_URL, element.get('url', '')))
        fields.extend(_flex_field(element))
    elif element_type == 'barcode':
        opcode = OP_BARCODE
        fields.append(_str_field(TAG_CODE, element.get('code', '')))
        fields.append(_str_field(TAG_BARCODE_TYPE, element.get('barcode_type') or ''))
        fields.extend(_flex_field(element))
    elif element_type == 'pagebreak':
        opcode = OP_PAGE_BREAK
    elif element_type == 'horizontalline':
        opcode = OP_HORIZONTAL_LINE
    elif element_type == 'row':
        opcode = OP_ROW
        fields.append((TAG_CHILDREN, _encode_list(element.get('children') or [])))
        fields.extend(_flex_field(element))
    elif element_type == 'sectionref':
        opcode = OP_SECTION_REF
        fields.append(_str_field(TAG_REF, element.get('ref', '')))
        fields.extend(_flex_field(element))
    elif element_type == 'iterator':
        opcode = OP_ITERATOR
        fields.append(_str_field(TAG_PATH, element.get('path', '')))
        fields.append((TAG_ROWS, _encode_list(element.get('rows') or [])))
        if element.get('conditions') is not None:
            fields.append((TAG_CONDITIONS, json.dumps(element['conditions']).encode('utf-8')))
        fields.extend(_flex_field(element))
    else:
        raise ReceiptCodecError(f"Unsupported element type: {element_type}")

    body = bytearray()
    # page breaks and lines have an empty body, not even a field count
    if opcode not in (OP_PAGE_BREAK, OP_HORIZONTAL_LINE):
        _write_fields(body, fields)

    write_varint(buf, opcode)
    write_varint(buf, len(body))
    buf.extend(body)


def _encode_list(elements: Sequence[ElementLike]) -> bytes:
    buf = bytearray()
    write_varint(buf, len(elements))
    for element in elements:
        _encode_element(buf, element)
    return bytes(buf)


def _text(fields: Dict[int, bytes], tag: int) -> str:
    return fields.get(tag, b'').decode('utf-8', errors='replace')


def _flex(fields: Dict[int, bytes]) -> Dict[str, int]:
    if TAG_FLEX not in fields:
        return {}
    return {'flex': read_varint(fields[TAG_FLEX], 0)[0]}


def _decode_body(opcode: int, body: bytes) -> Union[Dict[str, Any], None]:
    if opcode == OP_PAGE_BREAK:
        return {'type': 'pagebreak'}
    if opcode == OP_HORIZONTAL_LINE:
        return {'type': 'horizontalline'}

    fields = _read_fields(body)
    if opcode == OP_TEXT:
        element = {'type': 'text', 'text': _text(fields, TAG_TEXT),
                   'align': _text(fields, TAG_ALIGN) or 'left'}
        if TAG_STYLE in fields:
            element['style'] = _text(fields, TAG_STYLE)
        return {**element, **_flex(fields)}
    if opcode == OP_PICTURE:
        return {'type': 'picture', 'url': _text(fields, TAG_IMAGE_URL), **_flex(fields)}
    if opcode == OP_BARCODE:
        return {'type': 'barcode', 'code': _text(fields, TAG_CODE),
                'barcode_type': _text(fields, TAG_BARCODE_TYPE), **_flex(fields)}
    if opcode == OP_ROW:
        children = _decode_list(fields[TAG_CHILDREN]) if TAG_CHILDREN in fields else []
        return {'type': 'row', 'children': children, **_flex(fields)}
    if opcode == OP_SECTION_REF:
        return {'type': 'sectionref', 'ref': _text(fields, TAG_REF), **_flex(fields)}
    if opcode == OP_ITERATOR:
        element = {'type': 'iterator', 'path': _text(fields, TAG_PATH),
                   'rows': _decode_list(fields[TAG_ROWS]) if TAG_ROWS in fields else []}
        if TAG_CONDITIONS in fields:
            element['conditions'] = json.loads(_text(fields, TAG_CONDITIONS))
        return {**element, **_flex(fields)}

    logger.debug(f"Skipping unknown element opcode {opcode}")
    return None


def _decode_elements(data: bytes, offset: int) -> List[Dict[str, Any]]:
    count, offset = read_varint(data, offset)
    elements = []
    for _ in range(count):
        opcode, offset = read_varint(data, offset)
        length, offset = read_varint(data, offset)
        end = offset + length
        try:
            element = _decode_body(opcode, data[offset:end])
        except (ReceiptCodecError, ValueError) as e:
            logger.warning(f"Skipping undecodable element (opcode {opcode}): {e}")
            element = None
        offset = end
        if element is not None:
            elements.append(element)
    return elements


def _decode_list(data: bytes) -> List[Dict[str, Any]]:
    return _decode_elements(data, 0)


def encode_elements(elements: Sequence[ElementLike]) -> bytes:
    """
    Encode elements (objects or their dict form) to the binary format.

    Raises:
        ReceiptCodecError: for element types the format has no opcode for
    """
    buf = bytearray(MAGIC)
    buf.append(VERSION)
    write_varint(buf, len(elements))
    for element in elements:
        _encode_element(buf, element)
    return bytes(buf)


def decode_elements(data: bytes) -> List[PrintableElement]:
    """Decode binary data produced by encode_elements()."""
    return [element_from_dict(raw) for raw in decode_element_dicts(data)]


def decode_element_dicts(data: bytes) -> List[Dict[str, Any]]:
    """Decode binary data to JSON-compatible element dicts."""
    if len(data) < 3:
        raise ReceiptCodecError("Data too short for header")
    if data[:2] != MAGIC:
        raise ReceiptCodecError("Invalid magic bytes")

    version = data[2]
    if version != VERSION:
        raise ReceiptCodecError(f"Unsupported version: {version}")
    return _decode_elements(data, 3)


def to_base64(elements: Sequence[ElementLike]) -> str:
    return base64.b64encode(encode_elements(elements)).decode('ascii')


def from_base64(encoded: str) -> List[PrintableElement]:
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ReceiptCodecError(f"Invalid base64 data: {e}") from e
    return decode_elements(data)


def is_receipt_binary(encoded: str) -> bool:
    """True if ``encoded`` is base64 whose payload starts with the 'RC' magic."""
    if encoded.startswith('[') or encoded.startswith('{'):
        return False
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return False
    return len(data) >= 3 and data[:2] == MAGIC
