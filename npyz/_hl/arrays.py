"""
    Implements high-level support for reading and writing single array containers.

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
from typing import Any, BinaryIO, Iterator, Optional
from numpy import ndarray
import io

import numpy as np

from .descriptors import ByteOrder, TypeDescriptor, descriptor_for, native_type_for
from .header import ContainerVersion, Header, read_header, write_header
from .layout import validate_layout
from .. import config
from ..exceptions import TypeMismatch, UnexpectedEof


def _remaining_bytes(fp: BinaryIO) -> Optional[int]:
    """
    Number of bytes between the current position and the end of a seekable stream, None otherwise.
    """
    seekable = getattr(fp, 'seekable', None)
    if seekable is None or not seekable():
        return None

    position = fp.tell()
    end = fp.seek(0, io.SEEK_END)
    fp.seek(position)

    return end - position


def _read_into(fp: BinaryIO, buffer: bytearray, buffer_size: int = config.BUFFER_SIZE):
    """
    Fill a buffer from a stream, chunk by chunk.
    """
    view = memoryview(buffer)
    readinto = getattr(fp, 'readinto', None)
    position = 0

    while position < len(buffer):
        end = min(position + buffer_size, len(buffer))
        if readinto is not None:
            count = readinto(view[position:end])
        else:
            data = fp.read(end - position)
            count = len(data)
            view[position:position + count] = data

        if not count:
            raise UnexpectedEof(len(buffer), position)
        position += count


def check_type(descriptor: TypeDescriptor, dtype: Any):
    """
    Verify that elements of the given descriptor can be stored as the requested numpy type without conversion.
    :param descriptor: descriptor read from the header
    :param dtype: requested numpy type
    :return:
    """
    requested = descriptor_for(dtype)
    if not descriptor.same_type(requested):
        raise TypeMismatch(f'Container holds elements of type {descriptor}, cannot read them as {np.dtype(dtype)}.')


def read_array(fp: BinaryIO, dtype: Optional[Any] = None, size: Optional[int] = None, framed: bool = False,
               extra_bytes: str = config.EXTRA_BYTES_POLICY, max_header_size: int = config.MAX_HEADER_SIZE,
               max_data_length: int = config.MAX_DATA_LENGTH) -> ndarray:
    """
    Read an array from a stream positioned at the start of a container.
    :param fp: binary stream
    :param dtype: expected element type (if specified, the stored kind and width must match it exactly)
    :param size: total size of the container in bytes, if known (implies framed)
    :param framed: True if the stream ends exactly where the container should end
    :param extra_bytes: policy for bytes after the data region of a framed container ("error", "warn" or "ignore")
    :param max_header_size: largest accepted header length
    :param max_data_length: largest accepted data region length
    :return: an array in native byte order, in the element order recorded in the header
    """
    header, _, header_size = read_header(fp, max_header_size)
    descriptor = header.descriptor

    if dtype is not None:
        check_type(descriptor, dtype)

    if size is not None:
        remaining = size - header_size
        framed = True
    else:
        remaining = _remaining_bytes(fp)
        framed = framed and remaining is not None

    length = validate_layout(header, remaining, framed, extra_bytes, max_data_length)
    native_type = native_type_for(descriptor)
    order = 'F' if header.fortran_order else 'C'

    if length == 0:
        return np.zeros(header.shape, dtype=native_type, order=order)

    buffer = bytearray(length)
    _read_into(fp, buffer)

    array = np.frombuffer(buffer, dtype=descriptor.to_dtype())
    if descriptor.needs_swap():
        array.byteswap(inplace=True)
    array = array.view(native_type)

    return array.reshape(header.shape, order=order)


def _iter_chunks(array: ndarray, fortran_order: bool, buffer_size: int) -> Iterator[ndarray]:
    """
    Iterate over the elements of an array as flat chunks of at most buffer_size bytes.
    """
    count = max(buffer_size // max(array.itemsize, 1), 1)

    if array.flags.c_contiguous or array.flags.f_contiguous:
        flat = array.ravel(order='F' if fortran_order else 'C')
        for start in range(0, flat.size, count):
            yield flat[start:start + count]
    else:
        for chunk in np.nditer(array, flags=['external_loop', 'buffered', 'zerosize_ok'], buffersize=count,
                               order='C'):
            yield chunk


def write_array(fp: BinaryIO, array: ndarray, byte_order: ByteOrder = ByteOrder.NATIVE,
                version: Optional[ContainerVersion] = None, buffer_size: int = config.BUFFER_SIZE) -> int:
    """
    Write an array to a stream as a container.
    :param fp: binary stream
    :param array: array to write
    :param byte_order: byte order of the stored elements (native order by default)
    :param version: container version (if None, the lowest version able to hold the header is used)
    :param buffer_size: number of bytes converted and written at once
    :return: number of bytes written
    """
    if not isinstance(array, ndarray):
        raise ValueError(f'Expected array type to be ndarray, got {type(array)}.')

    descriptor = descriptor_for(array.dtype, byte_order)
    fortran_order = array.flags.f_contiguous and not array.flags.c_contiguous
    swap = descriptor.needs_swap(ByteOrder(array.dtype.byteorder))

    written = write_header(fp, Header(descriptor, array.shape, fortran_order), version)

    for chunk in _iter_chunks(array, fortran_order, buffer_size):
        if swap:
            chunk = chunk.byteswap()
        chunk_serialized = chunk.tobytes()
        fp.write(chunk_serialized)
        written += len(chunk_serialized)

    return written


def read_npy(file_path: str, dtype: Optional[Any] = None, **kwargs) -> ndarray:
    """
    Read an array from a container file.
    The file is expected to hold exactly one container, trailing bytes are handled by the extra_bytes policy.
    :param file_path: path to the file on disk
    :param dtype: expected element type
    :param kwargs: additional arguments of read_array
    :return: an array
    """
    kwargs.setdefault('framed', True)
    with open(file_path, 'rb') as fp:
        return read_array(fp, dtype, **kwargs)


def write_npy(file_path: str, array: ndarray, **kwargs) -> int:
    """
    Write an array to a container file, overwriting it if it exists.
    :param file_path: path to the file on disk
    :param array: array to write
    :param kwargs: additional arguments of write_array
    :return: number of bytes written
    """
    with open(file_path, 'wb') as fp:
        return write_array(fp, array, **kwargs)
