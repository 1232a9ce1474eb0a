"""
The setup.py file is a command line application built with setuptools.

It can be executed directly with python: `python setup.py --help`

The call to setuptools.setup (below) describes this python package and
enables all of the build, package, dist, install functionality required
to package this code for all the standard python tools like pip and pipenv
"""
from setuptools import setup, find_packages

setup(
    name="dlayer",
    description="Store container image layers and check out their union.",
    version="0.1.0",
    packages=find_packages(include=["dlayer", "dlayer.*"]),
    python_requires=">=3.7",
    install_requires=[
        "colorama",
        "semver>=2.10",
        "sentry-sdk>=1.0",
        "simplejson",
        "structlog",
        "typing_extensions",
    ],
    extras_require={
        "test": [
            "py",
            "pytest",
            "pytest-timeout",
        ],
    },
    entry_points={"console_scripts": ["dlayer=dlayer.cli:main"]},
)
