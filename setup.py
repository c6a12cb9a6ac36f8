"""
Setup script for columnml package.
"""

from setuptools import setup, find_packages

setup(
    name="columnml",
    version="0.1.0",
    packages=find_packages(include=["columnml", "columnml.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        # Testing
        "tests": [
            "pytest>=6.0.0",
            "scikit-learn>=1.0.0",
        ],
    },
    author="columnml developers",
    description="Fourier transforms and clustering visitors over table columns",
    keywords="fft, clustering, dbscan, affinity propagation, mean shift, columnar",
    python_requires=">=3.8",
)
