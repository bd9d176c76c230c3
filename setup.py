"""MLP Kernel — pip-installable package."""

from setuptools import setup, find_packages

setup(
    name="mlp-kernel",
    version="1.0.0",
    description="NumPy training / inference kernel for fully-connected feed-forward networks",
    author="Luca Gandolfi",
    packages=find_packages(include=["mlp_kernel", "mlp_kernel.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24.0",
        "pyyaml>=6.0",
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": ["pytest>=7.4.0"],
    },
)
