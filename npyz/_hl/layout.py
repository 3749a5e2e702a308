"""
    Implements validation of the data region size against the header.

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
from typing import Optional, Sequence
import logging

from .header import Header
from .. import config
from ..exceptions import ExtraBytesError, SizeOverflow, UnexpectedEof

logger = logging.getLogger(__name__)


def data_length(shape: Sequence[int], width: int, max_length: int = config.MAX_DATA_LENGTH) -> int:
    """
    Compute the size of the data region, checking every intermediate product against a limit.
    :param shape: array dimensions
    :param width: element width in bytes
    :param max_length: largest representable length
    :return: length of the data region in bytes
    """
    length = width
    if length > max_length:
        raise SizeOverflow(f'Element width {width} exceeds the limit of {max_length} bytes.')

    # a zero dimension makes every other dimension irrelevant
    if 0 in shape:
        return 0

    for dim in shape:
        if dim > max_length // length:
            raise SizeOverflow(f'Data length of shape {tuple(shape)} with {width} byte elements exceeds the limit'
                               f' of {max_length} bytes.')
        length *= dim

    return length


def check_extra_bytes(extra: int, policy: str = config.EXTRA_BYTES_POLICY):
    """
    Apply the excess bytes policy to an exactly framed container.
    :param extra: number of bytes after the data region
    :param policy: "error", "warn" or "ignore"
    :return:
    """
    if policy not in config.EXTRA_BYTES_POLICIES:
        raise ValueError(f'Expected extra bytes policy to be one of {", ".join(config.EXTRA_BYTES_POLICIES)},'
                         f' got "{policy}".')
    if extra <= 0 or policy == 'ignore':
        return
    if policy == 'error':
        raise ExtraBytesError(extra)

    logger.warning(f'Container has {extra} extra bytes after the array data, ignoring them.')


def validate_layout(header: Header, remaining: Optional[int] = None, framed: bool = False,
                    extra_bytes: str = config.EXTRA_BYTES_POLICY, max_length: int = config.MAX_DATA_LENGTH) -> int:
    """
    Check the declared shape and element width against the bytes available in the source.
    :param header: parsed header
    :param remaining: number of bytes left in the source after the header (None if unknown)
    :param framed: True if the source ends exactly where the container should end
    :param extra_bytes: policy for bytes left after the data region of a framed container
    :param max_length: largest data region length accepted
    :return: expected length of the data region in bytes
    """
    expected = data_length(header.shape, header.descriptor.width, max_length)

    if remaining is None:
        return expected
    if remaining < expected:
        raise UnexpectedEof(expected, remaining)
    if framed:
        check_extra_bytes(remaining - expected, extra_bytes)

    return expected
