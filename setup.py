from setuptools import setup

torch = ['torch>=1.0.0']
all = torch

extras_require = {
    'all': all,
    'torch': torch
}

setup(
    name='pynpyz',
    version='0.1.0',
    packages=['npyz', 'npyz._hl', 'npyz.utils'],
    license='GNU General Public License v3 (GPLv3)',
    description='Read and write NumPy .npy containers and .npz archives',
    python_requires='>=3.7',
    install_requires=[
        'numpy>=1.17.0'
    ],
    extras_require=extras_require
)
