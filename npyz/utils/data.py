"""
    Dataset utilities for PyTorch.

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
from typing import Any, Callable, Iterable, Optional
from torch.utils.data.dataset import Dataset, ConcatDataset
from numpy import ndarray
from .. import NpzFile
from ..exceptions import EntryNotFound


class NpzDataset(Dataset):
    """
    Represent a PyTorch Dataset whose items are the arrays of an archive, one member per item.

    Items follow the archive directory order, or the order of `names` when given:

        dataset = NpzDataset('train.npz', names=['x_0.npy', 'x_1.npy'], dtype=np.float32)
        loader = DataLoader(dataset, num_workers=4, worker_init_fn=dataset.worker_init_fn)
    """
    def __init__(self, file_path: str, names: Optional[Iterable[str]] = None, dtype: Optional[Any] = None,
                 process_func: Optional[Callable[[ndarray], Any]] = None):
        """
        Create a new `Dataset` object.
        :param file_path: path to the archive
        :param names: names of the members to use as items, in order (all members if not specified)
        :param dtype: expected element type of every member (not checked if not specified)
        :param process_func: function applied to each array after it is read
        """
        self.file_path = file_path
        self.dtype = dtype
        self.process_func = process_func

        self.npz = NpzFile(file_path, 'r')
        self.names = list(names) if names is not None else None
        if self.names is not None:
            for name in self.names:
                if name not in self.npz:
                    raise EntryNotFound(name)

    def worker_init_fn(self, worker_id: int = -1):
        """
        Reopen the archive so that each worker reads through its own handle.
        Needs to be set as "worker_init_fn" argument when using a Dataloader with num_workers > 1.
        :param worker_id: id of the PyTorch data loader worker calling the method
        """
        self.npz.open(self.file_path, 'r')

    def __getitem__(self, item: int) -> Any:
        if self.names is None:
            array = self.npz.read_array_by_index(item, self.dtype)
        else:
            array = self.npz.read_array(self.names[item], self.dtype)

        if self.process_func is not None:
            return self.process_func(array)
        return array

    def __len__(self) -> int:
        return len(self.npz) if self.names is None else len(self.names)


class NpzConcatDataset(ConcatDataset):
    """
    Represent a concatenation of archive datasets.
    """
    @classmethod
    def from_files(cls, file_paths: Iterable[str], **kwargs) -> 'NpzConcatDataset':
        """
        Build one dataset per archive and concatenate them.
        :param file_paths: paths to the archives
        :param kwargs: additional arguments of NpzDataset
        :return: concatenated dataset
        """
        return cls([NpzDataset(file_path, **kwargs) for file_path in file_paths])

    def worker_init_fn(self, worker_id: int = -1):
        """
        Reopen each of the archives.
        Needs to be set as "worker_init_fn" argument when using a Dataloader with num_workers > 1.
        :param worker_id: id of the PyTorch data loader worker calling the method
        """
        for dataset in self.datasets:
            dataset.worker_init_fn(worker_id)
