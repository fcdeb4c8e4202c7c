#!/usr/bin/env python3
"""
Setup script for DJ Transition Generator
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
if requirements_path.exists():
    requirements = requirements_path.read_text().splitlines()
    requirements = [req.strip() for req in requirements if req.strip() and not req.startswith('#')]
else:
    requirements = [
        'librosa>=0.10.0',
        'soundfile>=0.12.0',
        'numpy>=1.20.0',
        'scipy>=1.7.0',
    ]

setup(
    name="dj-transition",
    version="1.0.0",
    description="Tempo-matched DJ transitions between two tracks",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="DJ Transition Team",
    author_email="",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=requirements,
    extras_require={
        'test': ['pytest>=6.0'],
        'dev': ['pytest>=6.0', 'pytest-cov', 'flake8', 'black'],
    },
    entry_points={
        'console_scripts': [
            'dj-transition=dj_transition.cli.main:main',
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Multimedia :: Sound/Audio :: Analysis",
        "Topic :: Multimedia :: Sound/Audio :: Mixers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    keywords="dj mixing audio beat matching crossfade transitions tempo",
    include_package_data=True,
    zip_safe=False,
)
