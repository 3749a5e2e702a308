"""
    Implements the mapping between numpy element types and on-disk type descriptors.

    This file is part of npyz.

    npyz is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License, or
    (at your option) any later version.

    npyz is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with npyz.  If not, see <https://www.gnu.org/licenses/>.
"""
from collections import namedtuple
from enum import Enum
from typing import Any
import re
import sys

import numpy as np

from ..exceptions import UnsupportedDescriptor


class ByteOrder(Enum):
    """
    Byte order of the elements, using the characters of the descriptor tokens.
    """
    LITTLE = '<'
    BIG = '>'
    NATIVE = '='
    NOT_APPLICABLE = '|'

    def concrete(self) -> 'ByteOrder':
        """
        Resolve "native" and "not applicable" to the byte order of the running machine.
        :return: either ByteOrder.LITTLE or ByteOrder.BIG
        """
        if self in (ByteOrder.NATIVE, ByteOrder.NOT_APPLICABLE):
            return NATIVE_ORDER
        return self


NATIVE_ORDER = ByteOrder.LITTLE if sys.byteorder == 'little' else ByteOrder.BIG


class TypeCode(Enum):
    """
    Kind of the elements, using the numpy kind characters.
    """
    BOOL = 'b'
    SIGNED = 'i'
    UNSIGNED = 'u'
    FLOAT = 'f'
    COMPLEX = 'c'


"""
    Supported element widths (in bytes) for each kind.
"""
supported_widths = {
    TypeCode.BOOL: (1,),
    TypeCode.SIGNED: (1, 2, 4, 8),
    TypeCode.UNSIGNED: (1, 2, 4, 8),
    TypeCode.FLOAT: (2, 4, 8),
    TypeCode.COMPLEX: (8, 16),
}

"""
    Single character descriptors written by old producers.
"""
descriptor_aliases = {
    '?': (TypeCode.BOOL, 1),
    'b': (TypeCode.SIGNED, 1),
    'B': (TypeCode.UNSIGNED, 1),
}

_TOKEN_PATTERN = re.compile(r'([<>=|]?)([biufc])([0-9]+)')


class TypeDescriptor(namedtuple('TypeDescriptor', 'byte_order type_code width')):
    """
    Immutable description of an element type: byte order, kind and width in bytes.
    Single byte elements always carry ByteOrder.NOT_APPLICABLE.
    """
    __slots__ = ()

    def __new__(cls, byte_order: ByteOrder, type_code: TypeCode, width: int):
        if width not in supported_widths[type_code]:
            raise UnsupportedDescriptor(f'{byte_order.value}{type_code.value}{width}',
                                        f'Unsupported width {width} for kind "{type_code.value}", supported widths'
                                        f' are: {", ".join(str(w) for w in supported_widths[type_code])}.')
        if width == 1:
            byte_order = ByteOrder.NOT_APPLICABLE

        return super().__new__(cls, byte_order, type_code, width)

    @property
    def token(self) -> str:
        """
        Descriptor token as written in headers, e.g. "<f8" or "|b1".
        """
        return f'{self.byte_order.value}{self.type_code.value}{self.width}'

    def __str__(self) -> str:
        return self.token

    def with_byte_order(self, byte_order: ByteOrder) -> 'TypeDescriptor':
        return TypeDescriptor(byte_order, self.type_code, self.width)

    def needs_swap(self, byte_order: ByteOrder = ByteOrder.NATIVE) -> bool:
        """
        Tell whether elements must be byte-swapped to be converted to the given byte order.
        :param byte_order: byte order to convert to (native order by default)
        :return: True if the concrete byte orders differ
        """
        if self.width == 1:
            return False
        return self.byte_order.concrete() != byte_order.concrete()

    def same_type(self, other: 'TypeDescriptor') -> bool:
        """
        Compare kind and width, ignoring byte order.
        """
        return self.type_code == other.type_code and self.width == other.width

    def to_dtype(self) -> np.dtype:
        """
        Numpy type with this descriptor's byte order.
        """
        return np.dtype(self.token)


def descriptor_for(native_type: Any, byte_order: ByteOrder = ByteOrder.NATIVE) -> TypeDescriptor:
    """
    Build the canonical descriptor of a numpy element type.
    :param native_type: anything numpy accepts as a dtype
    :param byte_order: byte order the elements will be stored with, resolved to a concrete order
    :return: type descriptor
    """
    try:
        data_type = np.dtype(native_type)
    except TypeError as e:
        raise UnsupportedDescriptor(native_type, f'Type {native_type!r} is not a numpy type.') from e

    if data_type.fields is not None or data_type.subdtype is not None:
        raise UnsupportedDescriptor(native_type, f'Structured type {data_type} is not supported.')

    try:
        type_code = TypeCode(data_type.kind)
    except ValueError:
        raise UnsupportedDescriptor(native_type, f'Type {data_type} is not supported. Supported kinds are:'
                                                 f' {", ".join(t.value for t in TypeCode)}.') from None

    return TypeDescriptor(byte_order.concrete(), type_code, data_type.itemsize)


def parse_descriptor(descr: Any) -> TypeDescriptor:
    """
    Interpret the "descr" value of a header.
    :param descr: value read from the header (a string for simple types, a list for structured types)
    :return: type descriptor
    """
    if not isinstance(descr, str):
        raise UnsupportedDescriptor(descr, f'Only simple type descriptors are supported, got {descr!r}.')

    if descr in descriptor_aliases:
        type_code, width = descriptor_aliases[descr]
        return TypeDescriptor(ByteOrder.NOT_APPLICABLE, type_code, width)

    match = _TOKEN_PATTERN.fullmatch(descr)
    if match is None:
        raise UnsupportedDescriptor(descr)

    byte_order = ByteOrder(match.group(1) or '=')
    return TypeDescriptor(byte_order, TypeCode(match.group(2)), int(match.group(3)))


def native_type_for(descriptor: TypeDescriptor) -> np.dtype:
    """
    Numpy type in native byte order holding elements of the given descriptor.
    :param descriptor: type descriptor
    :return: numpy type
    """
    return descriptor.with_byte_order(ByteOrder.NATIVE).to_dtype()
