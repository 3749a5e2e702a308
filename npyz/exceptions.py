"""
    Exception types raised while reading or writing containers and archives.

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

    Failures of the underlying stream are not wrapped: they reach the caller as the original OSError.
"""


class NpyError(Exception):
    """Base exception for all errors raised by this library."""
    pass


class BadMagic(NpyError, ValueError):
    """The first bytes of the source are not the container magic bytes."""
    pass


class UnsupportedVersion(NpyError, ValueError):
    """
    The container declares a version this library cannot read.

    Attributes:
        major (int): declared major version number.
        minor (int): declared minor version number.
    """
    def __init__(self, major: int, minor: int):
        super().__init__(f'Unknown container version {major}.{minor}, expected one of 1.0, 2.0 or 3.0.')
        self.major = major
        self.minor = minor


class HeaderTooLarge(NpyError, ValueError):
    """The header payload is longer than the configured ceiling or than the length field can encode."""
    pass


class InvalidHeaderEncoding(NpyError, ValueError):
    """The header payload is not valid ASCII (versions 1.0 and 2.0) or UTF-8 (version 3.0)."""
    pass


class MalformedHeader(NpyError, ValueError):
    """The header payload is not a well-formed dictionary literal with the expected keys and values."""
    pass


class UnsupportedDescriptor(NpyError, TypeError):
    """
    The type descriptor is syntactically valid but does not map to a supported element type.

    Attributes:
        descr: the descriptor value as found in the header, or the offending native type.
    """
    def __init__(self, descr, message: str = None):
        super().__init__(message or f'Unsupported type descriptor {descr!r}.')
        self.descr = descr


class SizeOverflow(NpyError, OverflowError):
    """The data region length computed from shape and element width cannot be represented."""
    pass


class UnexpectedEof(NpyError, EOFError):
    """
    The source holds fewer bytes than the header declares.

    Attributes:
        expected (int): number of bytes needed.
        available (int): number of bytes actually available.
    """
    def __init__(self, expected: int, available: int):
        super().__init__(f'Expected {expected} bytes of array data, got {available}.')
        self.expected = expected
        self.available = available


class ExtraBytesError(NpyError, ValueError):
    """
    An exactly framed container holds bytes after its data region and the policy is "error".

    Attributes:
        extra (int): number of excess bytes.
    """
    def __init__(self, extra: int):
        super().__init__(f'Container has {extra} extra bytes after the array data.')
        self.extra = extra


class TypeMismatch(NpyError, TypeError):
    """The element type stored on disk differs from the requested native type."""
    pass


class EntryNotFound(NpyError, KeyError):
    """
    The archive holds no entry with the requested name.

    Attributes:
        name (str): name that was looked up.
    """
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f'Entry "{self.name}" could not be found in archive.'


class ArchiveLockedError(NpyError, IOError):
    """Another handle already owns the archive for writing."""
    pass
