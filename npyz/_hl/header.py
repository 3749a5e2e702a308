"""
    Implements high-level support for container headers.

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
from enum import Enum
from typing import Any, BinaryIO, Optional, Sequence, Tuple, Union
import logging
import struct

from .descriptors import TypeDescriptor, parse_descriptor
from .literal import format_literal, parse_literal
from .. import config
from ..exceptions import (BadMagic, HeaderTooLarge, InvalidHeaderEncoding, MalformedHeader, UnexpectedEof,
                          UnsupportedVersion)

logger = logging.getLogger(__name__)

"""
    Keys of the header dictionary, in the order they are written.
"""
header_keys = ('descr', 'fortran_order', 'shape')


class ContainerVersion(Enum):
    """
    Container format versions, valued by their (major, minor) numbers.
    """
    V1_0 = (1, 0)
    V2_0 = (2, 0)
    V3_0 = (3, 0)

    @property
    def major(self) -> int:
        return self.value[0]

    @property
    def minor(self) -> int:
        return self.value[1]

    @property
    def length_format(self) -> str:
        """
        Struct format of the little endian header length field.
        """
        return '<H' if self is ContainerVersion.V1_0 else '<I'

    @property
    def length_size(self) -> int:
        return struct.calcsize(self.length_format)

    @property
    def max_length(self) -> int:
        return (1 << (8 * self.length_size)) - 1

    @property
    def encoding(self) -> str:
        return 'utf-8' if self is ContainerVersion.V3_0 else 'ascii'

    @classmethod
    def from_numbers(cls, major: int, minor: int) -> 'ContainerVersion':
        try:
            return cls((major, minor))
        except ValueError:
            raise UnsupportedVersion(major, minor) from None


class Header:
    """
    Describes the array stored in a container: type descriptor, shape and element order.
    """
    def __init__(self, descr: Union[str, TypeDescriptor, list], shape: Sequence[int], fortran_order: bool = False):
        """
        Create a new header.
        :param descr: type descriptor, or the raw "descr" value of a header
        :param shape: array dimensions
        :param fortran_order: True if the first dimension varies fastest in the data region
        """
        self.descr = descr.token if isinstance(descr, TypeDescriptor) else descr
        self.shape: Tuple[int, ...] = tuple(int(dim) for dim in shape)
        self.fortran_order = bool(fortran_order)

        for dim in self.shape:
            if dim < 0:
                raise ValueError(f'Expected shape dimensions to be non-negative, got {self.shape}.')

    @property
    def descriptor(self) -> TypeDescriptor:
        """
        Type descriptor of the elements, raises UnsupportedDescriptor if the "descr" value is not supported.
        """
        return parse_descriptor(self.descr)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Header):
            return NotImplemented
        return (self.descr, self.shape, self.fortran_order) == (other.descr, other.shape, other.fortran_order)

    def __repr__(self) -> str:
        return f'Header(descr={self.descr!r}, shape={self.shape}, fortran_order={self.fortran_order})'

    def to_literal(self) -> str:
        """
        Format the header dictionary, without padding.
        :return: header dictionary literal
        """
        return format_literal({
            'descr': self.descr,
            'fortran_order': self.fortran_order,
            'shape': self.shape,
        })

    def tobytes(self, version: Optional[ContainerVersion] = None) -> bytes:
        """
        Serialize the header with its magic bytes, version, length field and padding.
        :param version: container version (if None, the lowest version able to hold the header is used)
        :return: serialized header, its length is a multiple of the alignment
        """
        payload = self.to_literal()
        if version is None:
            version = select_version(payload)
            if version is not ContainerVersion.V1_0:
                logger.info(f'Header requires container version {version.major}.{version.minor}.')
        else:
            check_version(payload, version)

        return build_header(payload, version)

    @classmethod
    def from_literal(cls, text: str) -> 'Header':
        """
        Parse a header dictionary literal.
        :param text: dictionary literal, without the final newline
        :return: header
        """
        dictionary = parse_literal(text)

        if not isinstance(dictionary, dict):
            raise MalformedHeader(f'Expected header to be a dictionary, got {dictionary!r}.')

        for key in header_keys:
            if key not in dictionary:
                raise MalformedHeader(f'Missing key "{key}" in header {dictionary!r}.')
        if len(dictionary) != len(header_keys):
            unknown = [key for key in dictionary if key not in header_keys]
            raise MalformedHeader(f'Unknown keys {unknown!r} in header {dictionary!r}.')

        descr = dictionary['descr']
        if not isinstance(descr, (str, list)):
            raise MalformedHeader(f'Illegal value for key "descr": {descr!r}.')

        fortran_order = dictionary['fortran_order']
        if not isinstance(fortran_order, bool):
            raise MalformedHeader(f'Illegal value for key "fortran_order": {fortran_order!r}.')

        shape = dictionary['shape']
        if not isinstance(shape, tuple) or \
                not all(isinstance(dim, int) and not isinstance(dim, bool) and dim >= 0 for dim in shape):
            raise MalformedHeader(f'Illegal value for key "shape": {shape!r}.')

        return cls(descr, shape, fortran_order)


def _prefix_size(version: ContainerVersion) -> int:
    return config.NUM_BYTES_MAGIC_BYTES + config.NUM_BYTES_VERSION + version.length_size


def header_length(payload: bytes, version: ContainerVersion) -> int:
    """
    Compute the value of the header length field: payload, padding and final newline.
    :param payload: encoded header dictionary
    :param version: container version
    :return: header length
    """
    unpadded = _prefix_size(version) + len(payload) + 1
    padding = -unpadded % config.HEADER_ALIGNMENT

    return len(payload) + padding + 1


def select_version(payload: str) -> ContainerVersion:
    """
    Find the lowest container version able to hold a header dictionary.
    :param payload: header dictionary literal
    :return: container version
    """
    candidates = (ContainerVersion.V1_0, ContainerVersion.V2_0) if payload.isascii() else (ContainerVersion.V3_0,)

    for version in candidates:
        if header_length(payload.encode(version.encoding), version) <= version.max_length:
            return version

    raise HeaderTooLarge(f'Header of {len(payload)} characters does not fit in any container version.')


def check_version(payload: str, version: ContainerVersion):
    """
    Verify that a header dictionary can be stored in the given container version.
    :param payload: header dictionary literal
    :param version: requested container version
    :return:
    """
    if version.encoding == 'ascii' and not payload.isascii():
        raise InvalidHeaderEncoding(f'Non-ASCII header cannot be stored in container version'
                                    f' {version.major}.{version.minor}.')
    if header_length(payload.encode(version.encoding), version) > version.max_length:
        raise HeaderTooLarge(f'Header of {len(payload)} characters does not fit in container version'
                             f' {version.major}.{version.minor}.')


def build_header(payload: str, version: ContainerVersion) -> bytes:
    """
    Assemble magic bytes, version, length field, payload and padding.
    :param payload: header dictionary literal
    :param version: container version able to hold the payload
    :return: serialized header
    """
    encoded = payload.encode(version.encoding)
    length = header_length(encoded, version)

    header = config.MAGIC_BYTES + bytes([version.major, version.minor]) + struct.pack(version.length_format, length)
    header += encoded + b' ' * (length - len(encoded) - 1) + b'\n'

    return header


def _read_exact(fp: BinaryIO, size: int) -> bytes:
    """
    Read exactly size bytes unless the end of the stream is reached.
    """
    data = fp.read(size)
    while len(data) < size:
        chunk = fp.read(size - len(data))
        if not chunk:
            break
        data += chunk

    return data


def read_header(fp: BinaryIO, max_header_size: int = config.MAX_HEADER_SIZE) -> Tuple[Header, ContainerVersion, int]:
    """
    Read and parse a header from a stream positioned at the start of a container.
    :param fp: binary stream
    :param max_header_size: largest accepted value of the header length field
    :return: the header, the container version and the total number of bytes read
    """
    magic_bytes = _read_exact(fp, config.NUM_BYTES_MAGIC_BYTES)
    if magic_bytes != config.MAGIC_BYTES:
        raise BadMagic(f'Expected magic bytes to be {config.MAGIC_BYTES!r}, got {magic_bytes!r}.')

    version_bytes = _read_exact(fp, config.NUM_BYTES_VERSION)
    if len(version_bytes) < config.NUM_BYTES_VERSION:
        raise UnexpectedEof(config.NUM_BYTES_VERSION, len(version_bytes))
    version = ContainerVersion.from_numbers(version_bytes[0], version_bytes[1])

    length_bytes = _read_exact(fp, version.length_size)
    if len(length_bytes) < version.length_size:
        raise UnexpectedEof(version.length_size, len(length_bytes))
    length, = struct.unpack(version.length_format, length_bytes)

    if length > max_header_size:
        raise HeaderTooLarge(f'Header length {length} exceeds the limit of {max_header_size} bytes.')

    payload = _read_exact(fp, length)
    if len(payload) < length:
        raise UnexpectedEof(length, len(payload))
    if not payload.endswith(b'\n'):
        raise MalformedHeader('Missing newline at the end of the header.')

    try:
        text = payload[:-1].decode(version.encoding)
    except UnicodeDecodeError as e:
        raise InvalidHeaderEncoding(f'Header of container version {version.major}.{version.minor} is not valid'
                                    f' {version.encoding}.') from e

    return Header.from_literal(text), version, _prefix_size(version) + length


def write_header(fp: BinaryIO, header: Header, version: Optional[ContainerVersion] = None) -> int:
    """
    Write a header to a stream.
    :param fp: binary stream
    :param header: header to write
    :param version: container version (if None, the lowest version able to hold the header is used)
    :return: number of bytes written
    """
    header_serialized = header.tobytes(version)
    fp.write(header_serialized)

    return len(header_serialized)
