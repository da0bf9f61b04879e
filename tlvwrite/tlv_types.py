"""TLV types, element types, tag controls and length-field sizes."""

from __future__ import annotations

from enum import IntEnum

from .errors import WrongTypeError

#: Low bits of an element type that select the size of its value or length field.
TYPE_SIZE_MASK = 0x03
#: High bits of a control byte that select the tag form.
TAG_CONTROL_MASK = 0xE0
#: Low bits of a control byte that hold the element type.
ELEMENT_TYPE_MASK = 0x1F


class TlvType(IntEnum):
    """Abstract TLV value types."""

    NOT_SPECIFIED = -1
    UNKNOWN_CONTAINER = -2
    SIGNED_INTEGER = 0x00
    UNSIGNED_INTEGER = 0x04
    BOOLEAN = 0x08
    FLOATING_POINT_NUMBER = 0x0A
    UTF8_STRING = 0x0C
    BYTE_STRING = 0x10
    NULL = 0x14
    STRUCTURE = 0x15
    ARRAY = 0x16
    LIST = 0x17


class ElementType(IntEnum):
    """Concrete element types as they appear in the control byte."""

    NOT_SPECIFIED = -1
    INT8 = 0x00
    INT16 = 0x01
    INT32 = 0x02
    INT64 = 0x03
    UINT8 = 0x04
    UINT16 = 0x05
    UINT32 = 0x06
    UINT64 = 0x07
    BOOLEAN_FALSE = 0x08
    BOOLEAN_TRUE = 0x09
    FLOAT32 = 0x0A
    FLOAT64 = 0x0B
    UTF8_STRING_1BYTE_LENGTH = 0x0C
    UTF8_STRING_2BYTE_LENGTH = 0x0D
    UTF8_STRING_4BYTE_LENGTH = 0x0E
    UTF8_STRING_8BYTE_LENGTH = 0x0F
    BYTE_STRING_1BYTE_LENGTH = 0x10
    BYTE_STRING_2BYTE_LENGTH = 0x11
    BYTE_STRING_4BYTE_LENGTH = 0x12
    BYTE_STRING_8BYTE_LENGTH = 0x13
    NULL = 0x14
    STRUCTURE = 0x15
    ARRAY = 0x16
    LIST = 0x17
    END_OF_CONTAINER = 0x18


class TagControl(IntEnum):
    """Tag forms, stored in the high bits of the control byte."""

    ANONYMOUS = 0x00
    CONTEXT_SPECIFIC = 0x20
    COMMON_PROFILE_2BYTES = 0x40
    COMMON_PROFILE_4BYTES = 0x60
    IMPLICIT_PROFILE_2BYTES = 0x80
    IMPLICIT_PROFILE_4BYTES = 0xA0
    FULLY_QUALIFIED_6BYTES = 0xC0
    FULLY_QUALIFIED_8BYTES = 0xE0


class FieldSize(IntEnum):
    """Size of the value or length field that follows the tag."""

    ZERO_BYTE = -1
    ONE_BYTE = 0
    TWO_BYTE = 1
    FOUR_BYTE = 2
    EIGHT_BYTE = 3

    def byte_count(self) -> int:
        """Number of bytes the field occupies."""
        if self is FieldSize.ZERO_BYTE:
            return 0
        return 1 << self.value


_CONTAINER_TYPES = frozenset({TlvType.STRUCTURE, TlvType.ARRAY, TlvType.LIST})


def is_container(tlv_type: TlvType) -> bool:
    """Whether the type is a structure, array or list."""
    return tlv_type in _CONTAINER_TYPES


def element_type_for_container(tlv_type: TlvType) -> ElementType:
    """The element type that opens a container of the given type."""
    if not is_container(tlv_type):
        raise WrongTypeError(f"{tlv_type!r} is not a container type")
    return ElementType(int(tlv_type))


def _has_value(element_type: ElementType) -> bool:
    return (
        ElementType.INT8 <= element_type <= ElementType.UINT64
        or ElementType.FLOAT32 <= element_type <= ElementType.BYTE_STRING_8BYTE_LENGTH
    )


def field_size_of(element_type: ElementType) -> FieldSize:
    """The size of the value or length field that follows an element's tag."""
    if _has_value(element_type):
        return FieldSize(int(element_type) & TYPE_SIZE_MASK)
    return FieldSize.ZERO_BYTE