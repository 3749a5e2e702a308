"""
    Run tests for the incremental output stream

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
import os
import tempfile
import unittest

import numpy as np

from npyz import ByteOrder, OutputStream, TypeMismatch, UnexpectedEof, read_npy


class TestOutputStream(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.npy_path = os.path.join(self.tmp_dir.name, 'stream.npy')

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_write_rows(self):
        expected = np.arange(1_000 * 8, dtype=np.float64).reshape(1_000, 8)

        with OutputStream(self.npy_path, np.float64, expected.shape) as stream:
            for row in expected:
                stream.write(row)
            self.assertTrue(stream.complete)
            self.assertEqual(stream.num_written, expected.size)

        self.assertTrue(np.array_equal(read_npy(self.npy_path), expected))
        self.assertTrue(np.array_equal(np.load(self.npy_path), expected))

    def test_write_sequences(self):
        with OutputStream(self.npy_path, np.int16, (2, 3), byte_order=ByteOrder.BIG) as stream:
            self.assertEqual(stream.write([1, 2]), 2)
            self.assertEqual(stream.write([3, 4, 5, 6]), 6)

        self.assertTrue(np.array_equal(read_npy(self.npy_path), [[1, 2, 3], [4, 5, 6]]))

    def test_fortran_order(self):
        expected = np.arange(6, dtype=np.int32).reshape(2, 3)

        with OutputStream(self.npy_path, np.int32, expected.shape, fortran_order=True) as stream:
            stream.write(expected.ravel(order='F'))

        result = read_npy(self.npy_path)
        self.assertTrue(np.array_equal(result, expected))
        self.assertTrue(result.flags.f_contiguous)

    def test_too_many_elements(self):
        with OutputStream(self.npy_path, np.uint8, (4,)) as stream:
            stream.write(np.arange(3, dtype=np.uint8))
            with self.assertRaises(ValueError):
                stream.write(np.arange(2, dtype=np.uint8))
            self.assertEqual(stream.num_written, 3)
            stream.write(np.arange(1, dtype=np.uint8))

        self.assertTrue(np.array_equal(read_npy(self.npy_path), [0, 1, 2, 0]))

    def test_too_few_elements(self):
        stream = OutputStream(self.npy_path, np.float32, (4, 4))
        stream.write(np.zeros(15, dtype=np.float32))

        with self.assertRaises(ValueError):
            stream.close()
        with self.assertRaises(UnexpectedEof):
            read_npy(self.npy_path)

    def test_exception_inside_context(self):
        with self.assertRaises(KeyError):
            with OutputStream(self.npy_path, np.float32, (4,)) as stream:
                stream.write(np.zeros(2, dtype=np.float32))
                raise KeyError('interrupted')

    def test_type_mismatch(self):
        with OutputStream(self.npy_path, np.float32, (2,)) as stream:
            with self.assertRaises(TypeMismatch):
                stream.write(np.zeros(2, dtype=np.float64))
            stream.write(np.zeros(2, dtype=np.float32))

    def test_sequence_type_mismatch(self):
        with OutputStream(self.npy_path, np.int16, (4,)) as stream:
            for values in ([1.7, -2.9], [70_000, 1], ['1', '2'], [1 + 2j]):
                with self.assertRaises(TypeMismatch, msg=str(values)):
                    stream.write(values)
            self.assertEqual(stream.num_written, 0)
            stream.write([True, -32768, 32767, 4])

        self.assertTrue(np.array_equal(read_npy(self.npy_path), [1, -32768, 32767, 4]))

    def test_sequence_to_float_stream(self):
        with OutputStream(self.npy_path, np.float32, (3,)) as stream:
            stream.write([0.5, 2])
            stream.write([])
            with self.assertRaises(TypeMismatch):
                stream.write([1j])
            stream.write([-1.25])

        self.assertTrue(np.array_equal(read_npy(self.npy_path), np.array([0.5, 2.0, -1.25], dtype=np.float32)))

    def test_write_after_close(self):
        stream = OutputStream(self.npy_path, np.int8, (0,))
        stream.close()
        with self.assertRaises(IOError):
            stream.write([1])


if __name__ == '__main__':
    unittest.main()
