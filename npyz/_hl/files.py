"""
    Implements high-level support for archives of named arrays.

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
from typing import Any, BinaryIO, Dict, Hashable, Iterator, List, Optional, Set, Type, Union
from types import TracebackType
from numpy import ndarray
import logging
import os
import threading
import time
import zipfile

from .arrays import read_array, write_array
from .descriptors import ByteOrder
from .header import ContainerVersion
from .. import config
from ..exceptions import ArchiveLockedError, EntryNotFound

logger = logging.getLogger(__name__)

"""
    Directory record of an archive member: its name, whether it is deflate compressed
    and the size of the container it holds.
"""
ArchiveEntry = namedtuple('ArchiveEntry', 'name is_compressed size')

"""
    Archives currently owned by a writing handle.
"""
_writers: Set[Hashable] = set()
_writers_lock = threading.Lock()


def _owner_key(file: Union[str, os.PathLike, BinaryIO]) -> Hashable:
    if isinstance(file, (str, bytes, os.PathLike)):
        return os.path.realpath(os.fspath(file))
    return 'fileobj', id(file)


class NpzFile:
    """
    Represents an archive of named arrays, each member holding one container.
    """
    def __init__(self, file_path: Union[str, os.PathLike, BinaryIO], mode: str = 'r',
                 extra_bytes: str = config.EXTRA_BYTES_POLICY, max_header_size: int = config.MAX_HEADER_SIZE):
        """
        Create a new archive object.
        :param file_path: path to the archive on disk, or a binary file object
        :param mode: opening mode ("r", "w" or "a")
        :param extra_bytes: policy for bytes after the data region of a member ("error", "warn" or "ignore")
        :param max_header_size: largest accepted container header length
        """
        self._file_path = file_path
        self._mode = mode
        self._zip: Optional[zipfile.ZipFile] = None
        self._owner: Optional[Hashable] = None
        self._entries: Dict[str, ArchiveEntry] = dict()
        self._write_lock = threading.Lock()
        self.extra_bytes = extra_bytes
        self.max_header_size = max_header_size

        self.open(file_path, mode)

    def open(self, file_path: Union[str, os.PathLike, BinaryIO], mode: str):
        """
        Open the archive and load its directory.
        This method needs to be called by each worker in case of multiprocessing to avoid concurrency issues.
        :param file_path: path to the archive on disk, or a binary file object
        :param mode: opening mode ("r", "w" or "a")
        :return:
        """
        if mode not in ('r', 'w', 'a'):
            raise ValueError(f'Expected NpzFile opening mode to be "r", "w" or "a", got {mode}.')

        if self._zip is not None:
            self.close()

        self._file_path = file_path
        self._mode = mode

        if mode != 'r':
            self._acquire(file_path)
        try:
            self._zip = zipfile.ZipFile(file_path, mode, allowZip64=True)
        except BaseException:
            self._release()
            raise

        self._entries = dict()
        for info in self._zip.infolist():
            self._entries[info.filename] = ArchiveEntry(info.filename, info.compress_type != zipfile.ZIP_STORED,
                                                        info.file_size)

        logger.debug(f'Opened archive {file_path} in "{mode}" mode with {len(self._entries)} entries.')

    def _acquire(self, file_path: Union[str, os.PathLike, BinaryIO]):
        key = _owner_key(file_path)
        with _writers_lock:
            if key in _writers:
                raise ArchiveLockedError(f'Archive {file_path} is already opened for writing by another handle.')
            _writers.add(key)
        self._owner = key

    def _release(self):
        if self._owner is None:
            return
        with _writers_lock:
            _writers.discard(self._owner)
        self._owner = None

    def __getstate__(self) -> Dict[str, Any]:
        """
        Pickle a read handle (e.g. for data loader workers), the archive is opened again on unpickling.
        """
        if self._mode != 'r' or not isinstance(self._file_path, (str, bytes, os.PathLike)):
            raise TypeError('Only archives opened from a path in "r" mode can be pickled.')

        return {'file_path': self._file_path, 'extra_bytes': self.extra_bytes,
                'max_header_size': self.max_header_size}

    def __setstate__(self, state: Dict[str, Any]):
        self.__init__(state['file_path'], 'r', state['extra_bytes'], state['max_header_size'])

    def __enter__(self):
        """
        Return NpzFile object when using a "with" statement.
        :return: NpzFile object
        """
        return self

    def __exit__(self, exception_type: Optional[Type[BaseException]], exception_value: Optional[BaseException],
                 traceback: Optional[TracebackType]):
        """
        Explicitly close the NpzFile when exiting a "with" context and handle exceptions.
        :param exception_type: type of exception
        :param exception_value: value of exception
        :param traceback: traceback
        :return:
        """
        self.close()

    def close(self):
        """
        Close the archive, writing its directory if it was opened for writing.
        Needs to be called explicitly or use a "with" statement.
        :return:
        """
        if self._zip is None:
            return

        try:
            self._zip.close()
        finally:
            self._zip = None
            self._release()

        logger.debug(f'Closed archive {self._file_path}.')

    def validate_file_handle(self, mode: str):
        if mode == 'r':
            message = 'Trying to read an array from'
        elif mode == 'w':
            message = 'Trying to write an array to'
        else:
            raise ValueError(f'Unknown mode "{mode}"')

        if self._zip is None:
            raise IOError(f'{message} a closed archive.')
        if mode == 'w' and self._mode == 'r':
            raise IOError(f'Archive is expected to be opened in "w" or "a" mode, got "{self._mode}".')

    def write_array(self, name: str, array: ndarray, compressed: bool = False,
                    byte_order: ByteOrder = ByteOrder.NATIVE, version: Optional[ContainerVersion] = None) -> ArchiveEntry:
        """
        Write an array as a new member of the archive.
        :param name: member name (conventionally ending with ".npy")
        :param array: array to write
        :param compressed: if True, the member is deflate compressed, otherwise it is stored
        :param byte_order: byte order of the stored elements
        :param version: container version (if None, the lowest version able to hold the header is used)
        :return: directory record of the new member
        """
        self.validate_file_handle('w')

        if type(name) is not str:
            raise ValueError(f'Expected name type to be str, got {type(name)}.')

        with self._write_lock:
            if name in self._entries:
                raise ValueError(f'Archive already holds an entry named "{name}".')

            info = zipfile.ZipInfo(name, time.localtime(time.time())[:6])
            info.compress_type = zipfile.ZIP_DEFLATED if compressed else zipfile.ZIP_STORED
            info.external_attr = 0o644 << 16

            with self._zip.open(info, 'w', force_zip64=True) as fp:
                size = write_array(fp, array, byte_order, version)

            entry = ArchiveEntry(name, compressed, size)
            self._entries[name] = entry

        logger.debug(f'Wrote entry "{name}" ({size} bytes, compressed={compressed}) to archive {self._file_path}.')

        return entry

    def read_array(self, name: str, dtype: Optional[Any] = None) -> ndarray:
        """
        Read the array held by a member of the archive.
        :param name: member name
        :param dtype: expected element type (if specified, the stored kind and width must match it exactly)
        :return: an array
        """
        self.validate_file_handle('r')

        if name not in self._entries:
            raise EntryNotFound(name)

        with self._zip.open(name, 'r') as fp:
            return read_array(fp, dtype, size=self._entries[name].size, extra_bytes=self.extra_bytes,
                              max_header_size=self.max_header_size)

    def read_array_by_index(self, index: int, dtype: Optional[Any] = None) -> ndarray:
        """
        Read the array held by the member at the given position of the directory.
        :param index: position of the member
        :param dtype: expected element type
        :return: an array
        """
        names = self.list_names()
        if not -len(names) <= index < len(names):
            raise IndexError(f'Entry {index} out of range.')

        return self.read_array(names[index], dtype)

    def list_names(self) -> List[str]:
        """
        Get the member names, in directory order.
        :return: list of names
        """
        return list(self._entries)

    def names(self) -> List[str]:
        """
        Get the member names, in directory order (same as list_names).
        :return: list of names
        """
        return self.list_names()

    def entry(self, name: str) -> ArchiveEntry:
        if name not in self._entries:
            raise EntryNotFound(name)
        return self._entries[name]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: Any) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_names())


def savez(file_path: Union[str, os.PathLike, BinaryIO], compressed: bool = False, **arrays: ndarray):
    """
    Write arrays to a new archive, each under the ".npy" suffixed keyword name.
    :param file_path: path to the archive on disk, or a binary file object
    :param compressed: if True, members are deflate compressed
    :param arrays: arrays to write
    :return:
    """
    with NpzFile(file_path, 'w') as npz:
        for name, array in arrays.items():
            npz.write_array(name + '.npy', array, compressed)


def load(file_path: Union[str, os.PathLike, BinaryIO], **kwargs) -> Dict[str, ndarray]:
    """
    Read every member of an archive.
    :param file_path: path to the archive on disk, or a binary file object
    :param kwargs: additional arguments of NpzFile
    :return: dictionary of (member name, array) pairs, in directory order
    """
    with NpzFile(file_path, 'r', **kwargs) as npz:
        return {name: npz.read_array(name) for name in npz.list_names()}
