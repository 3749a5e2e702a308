"""
    Implements incremental writing of a single array container.

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
from typing import Any, Optional, Sequence, Type
from types import TracebackType
from numpy import ndarray
import logging

import numpy as np

from .arrays import _iter_chunks, check_type
from .descriptors import ByteOrder, descriptor_for
from .header import ContainerVersion, Header, write_header
from .layout import data_length
from .. import config
from ..exceptions import TypeMismatch

logger = logging.getLogger(__name__)


class OutputStream:
    """
    Writes a container whose data is provided progressively, as flat slices of elements in file order.
    """
    def __init__(self, file_path: str, dtype: Any, shape: Sequence[int], fortran_order: bool = False,
                 byte_order: ByteOrder = ByteOrder.NATIVE, version: Optional[ContainerVersion] = None,
                 buffer_size: int = config.BUFFER_SIZE):
        """
        Create the file and write the container header.
        :param file_path: path to the file on disk
        :param dtype: element type
        :param shape: array dimensions
        :param fortran_order: True if the elements are provided with the first dimension varying fastest
        :param byte_order: byte order of the stored elements
        :param version: container version (if None, the lowest version able to hold the header is used)
        :param buffer_size: number of bytes converted and written at once
        """
        self._dtype = np.dtype(dtype)
        self._descriptor = descriptor_for(self._dtype, byte_order)
        self._header = Header(self._descriptor, shape, fortran_order)
        self._num_elements = data_length(self._header.shape, 1)
        self._num_written = 0
        self._buffer_size = buffer_size
        self._fp = None

        self._fp = open(file_path, 'wb')
        try:
            write_header(self._fp, self._header, version)
        except BaseException:
            self._fp.close()
            raise

    @property
    def num_elements(self) -> int:
        return self._num_elements

    @property
    def num_written(self) -> int:
        return self._num_written

    @property
    def complete(self) -> bool:
        return self._num_written == self._num_elements

    def write(self, values: Any) -> int:
        """
        Append elements to the data region.
        :param values: array (of exactly the stream element type) or sequence of elements representable in that type
        :return: total number of elements written so far
        """
        if self._fp is None or self._fp.closed:
            raise IOError('Trying to write to a closed stream.')

        if isinstance(values, ndarray):
            check_type(self._descriptor, values.dtype)
        else:
            values = self._convert(values)
        values = values.reshape(-1)

        if self._num_written + values.size > self._num_elements:
            raise ValueError(f'Writing {values.size} elements would exceed the {self._num_elements} elements'
                             f' given by shape {self._header.shape} ({self._num_written} already written).')

        swap = self._descriptor.needs_swap(ByteOrder(values.dtype.byteorder))
        for chunk in _iter_chunks(values, False, self._buffer_size):
            if swap:
                chunk = chunk.byteswap()
            self._fp.write(chunk.tobytes())

        self._num_written += values.size

        return self._num_written

    def _convert(self, values: Any) -> ndarray:
        """
        Convert a sequence of elements to the stream element type, rejecting other kinds and integers out of range.
        :param values: sequence of elements
        :return: flat array of the stream element type
        """
        converted = np.asarray(values)
        if converted.size == 0:
            return np.empty(converted.shape, dtype=self._dtype)

        if not np.can_cast(converted.dtype, self._dtype, casting='same_kind'):
            raise TypeMismatch(f'Cannot write elements of type {converted.dtype} to a stream of {self._dtype}.')

        cast = converted.astype(self._dtype)
        if self._dtype.kind in 'biu' and not np.array_equal(cast, converted):
            raise TypeMismatch(f'Elements of type {converted.dtype} do not fit in a stream of {self._dtype}.')

        return cast

    def __enter__(self):
        """
        Return OutputStream object when using a "with" statement.
        :return: OutputStream object
        """
        return self

    def __exit__(self, exception_type: Optional[Type[BaseException]], exception_value: Optional[BaseException],
                 traceback: Optional[TracebackType]):
        """
        Close the stream when exiting a "with" context, without checking completeness if an exception occurred.
        """
        self.close(check=exception_type is None)

    def close(self, check: bool = True):
        """
        Close the file.
        :param check: if True, raise an error when fewer elements than the shape requires were written
        :return:
        """
        if self._fp is None or self._fp.closed:
            return

        self._fp.close()

        if not self.complete:
            logger.debug(f'Stream closed after {self._num_written} of {self._num_elements} elements.')
            if check:
                raise ValueError(f'Only {self._num_written} of the {self._num_elements} elements given by shape'
                                 f' {self._header.shape} were written.')
