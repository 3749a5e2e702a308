"""
    Run tests for the PyTorch bindings

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
import importlib.util
import os
import tempfile
import unittest

import numpy as np

from npyz import EntryNotFound, NpzFile, TypeMismatch

HAS_TORCH = importlib.util.find_spec('torch') is not None

NUM_ITEMS = 100
NUM_WORKERS = 2
FIXED_LEN = 100


def create_test_data(file_path, num_items, offset=0):
    data_dict = dict()

    with NpzFile(file_path, 'w') as npz:
        for i in range(offset, offset + num_items):
            array = np.full(FIXED_LEN, i, dtype=np.float32)
            npz.write_array(str(i), array, compressed=i % 2 == 0)
            data_dict[str(i)] = array

    return data_dict


@unittest.skipUnless(HAS_TORCH, 'torch is not installed')
class TestSingleDataset(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.npz_path = os.path.join(self.tmp_dir.name, 'data.npz')
        self.data_dict = create_test_data(self.npz_path, NUM_ITEMS)

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_sequential_item_read(self):
        from torch.utils.data import DataLoader
        from npyz.utils.data import NpzDataset

        npz_dataset = NpzDataset(self.npz_path)
        self.assertEqual(len(npz_dataset), NUM_ITEMS)

        npz_dataloader = DataLoader(npz_dataset, shuffle=False, batch_size=1, num_workers=NUM_WORKERS,
                                    worker_init_fn=npz_dataset.worker_init_fn)

        for i, batch in enumerate(npz_dataloader):
            assert np.all(batch[0].numpy() == self.data_dict[str(i)])

    def test_names_and_processing(self):
        from npyz.utils.data import NpzDataset

        npz_dataset = NpzDataset(self.npz_path, names=['3', '1'], process_func=lambda array: array * 2)

        self.assertEqual(len(npz_dataset), 2)
        assert np.all(npz_dataset[0] == self.data_dict['3'] * 2)
        assert np.all(npz_dataset[1] == self.data_dict['1'] * 2)

    def test_unknown_name(self):
        from npyz.utils.data import NpzDataset

        with self.assertRaises(EntryNotFound):
            NpzDataset(self.npz_path, names=['3', 'missing'])

    def test_dtype(self):
        from npyz.utils.data import NpzDataset

        assert np.all(NpzDataset(self.npz_path, dtype=np.float32)[-1] == self.data_dict[str(NUM_ITEMS - 1)])
        with self.assertRaises(TypeMismatch):
            NpzDataset(self.npz_path, dtype=np.float64)[0]


@unittest.skipUnless(HAS_TORCH, 'torch is not installed')
class TestConcatDataset(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.npz_paths = [os.path.join(self.tmp_dir.name, f'data_{i}.npz') for i in range(2)]
        self.data_dict = dict()
        for i, npz_path in enumerate(self.npz_paths):
            self.data_dict.update(create_test_data(npz_path, NUM_ITEMS, offset=i * NUM_ITEMS))

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_sequential_item_read(self):
        from torch.utils.data import DataLoader
        from npyz.utils.data import NpzConcatDataset

        npz_dataset = NpzConcatDataset.from_files(self.npz_paths, dtype=np.float32)
        self.assertEqual(len(npz_dataset), 2 * NUM_ITEMS)
        npz_dataloader = DataLoader(npz_dataset, shuffle=False, batch_size=1, num_workers=NUM_WORKERS,
                                    worker_init_fn=npz_dataset.worker_init_fn)

        for i, batch in enumerate(npz_dataloader):
            assert np.all(batch[0].numpy() == self.data_dict[str(i)])


if __name__ == '__main__':
    unittest.main()
