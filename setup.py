"""
Installation configuration for backup-guard
"""

import sys
from pathlib import Path

from setuptools import find_packages, setup

# Add the package directory to path to import __version__
sys.path.insert(0, str(Path(__file__).parent / "backup_guard"))
from __version__ import __version__

readme_file = Path(__file__).parent / "README.md"
long_description = ""
if readme_file.exists():
    long_description = readme_file.read_text(encoding="utf-8")

setup(
    name="backup-guard",
    version=__version__,
    description="Security guards for backup/restore: path validation, rate limiting, error sanitization",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="backup-guard Contributors",
    author_email="",
    license="MIT",
    packages=find_packages(include=["backup_guard", "backup_guard.*"]),
    install_requires=[
        "pyyaml>=6.0,<7.0",
        "rich>=13.7.0",
        "click>=8.1.7,<9.0",
        "python-json-logger>=3.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "backup-guard=backup_guard.cli:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: Security",
        "Topic :: System :: Archiving :: Backup",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="backup security path-traversal rate-limiting error-sanitization",
)
