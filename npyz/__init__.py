"""
    Python implementation of the NumPy array container (.npy) and archive (.npz) formats.

    A container stores one n-dimensional array of fixed width numeric elements, with its element type,
    shape and element order, so that files can be exchanged with NumPy and other tools:
    <MAGIC BYTES><VERSION MAJOR><VERSION MINOR><HEADER LENGTH><HEADER DICTIONARY + PADDING><ARRAY DATA>

    The header dictionary is a Python literal such as {'descr': '<f8', 'fortran_order': False, 'shape': (3, 4,)},
    padded with spaces and a final newline so that the array data starts at a multiple of 64 bytes.

    An archive is a zip file in which each member holds one container.
"""
from ._hl.arrays import read_array, write_array, read_npy, write_npy
from ._hl.descriptors import ByteOrder, TypeCode, TypeDescriptor, descriptor_for, native_type_for, parse_descriptor
from ._hl.files import ArchiveEntry, NpzFile, savez, load
from ._hl.header import ContainerVersion, Header, read_header, write_header
from ._hl.stream import OutputStream
from .exceptions import *
from .version import version as __version__
