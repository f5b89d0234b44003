"""
SeedSafe setup.py — install the library and the ``seedsafe`` command.

Usage:
    pip install .                          # install everything
    pip install ".[dev]"                   # install with dev tools
"""

from pathlib import Path

from setuptools import find_packages, setup

HERE = Path(__file__).resolve().parent
long_description = ""
if (HERE / "README.md").exists():
    long_description = (HERE / "README.md").read_text(encoding="utf-8")

setup(
    name="seedsafe",
    version="1.0.0",
    description="Deterministic wallet generation with Argon2id/AES-GCM encrypted export",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    author="SeedSafe Contributors",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*", "build"]),
    py_modules=["run_wallet"],
    install_requires=[
        "ecdsa>=0.18.0,<0.20",
        "pycryptodome>=3.21.0,<4",
        "tomli>=2.0.0,<3;python_version<'3.11'",
        "argon2-cffi>=21.3.0",
        "mnemonic>=0.20",
        "bip_utils>=2.7.0",
        "base58>=2.1.0",
        "bech32>=1.2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "mypy>=1.5",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "seedsafe=run_wallet:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Security :: Cryptography",
        "Topic :: Software Development :: Libraries",
    ],
)
