"""
    Configuration file

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
import sys

"""
    Magic bytes for format identification
"""
MAGIC_BYTES = b'\x93NUMPY'
"""
    Number of magic bytes.
"""
NUM_BYTES_MAGIC_BYTES = len(MAGIC_BYTES)
"""
    Number of bytes in which to store the version number (one for major, one for minor).
"""
NUM_BYTES_VERSION = 2
"""
    The total header length (magic bytes, version, header length field, payload, padding and final newline)
    is a multiple of this value.
"""
HEADER_ALIGNMENT = 64
"""
    Largest header payload accepted by readers unless a larger limit is requested explicitly.
"""
MAX_HEADER_SIZE = 10_000
"""
    Number of bytes written or byte-swapped at once when streaming array data.
"""
BUFFER_SIZE = 2 ** 18
"""
    Largest data region length (in bytes) a reader will allocate.
"""
MAX_DATA_LENGTH = sys.maxsize
"""
    What to do with bytes left after the data region of an exactly framed container:
    "error", "warn" or "ignore".
"""
EXTRA_BYTES_POLICY = 'warn'
EXTRA_BYTES_POLICIES = ('error', 'warn', 'ignore')
