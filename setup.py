#!/usr/bin/env python
# -*- encoding: utf-8 -*-
import io
import re
from os.path import dirname, join

from setuptools import find_packages, setup


def read(*names, **kwargs):
    return io.open(
        join(dirname(__file__), *names), encoding=kwargs.get("encoding", "utf8")
    ).read()


def find_version(*file_paths):
    contents = read(*file_paths)
    match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", contents, re.M)
    if match:
        return match.group(1)
    raise RuntimeError("Unable to find version string.")


setup(
    name="azcmdlet",
    python_requires=">=3.8",
    version=find_version("src", "azcmdlet", "__init__.py"),
    license="MIT",
    description="CLI and library of parameter-driven Azure management cmdlets",
    long_description="""`azcmdlet` is both a CLI and library of Azure management cmdlets. Each
cmdlet declares typed parameters grouped into parameter sets, validates its
input, resolves the applicable parameter set, builds the request for it, asks
for confirmation before changing anything, and calls Azure Site Recovery or the
local environment profile store.""",
    long_description_content_type="text/markdown",
    author="Pete Kazmier",
    author_email="opensource@fidelity.com",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        # complete classifier list: http://pypi.python.org/pypi?%3Aaction=list_classifiers
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Unix",
        "Operating System :: POSIX",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: Utilities",
    ],
    keywords=["azure", "site-recovery", "cli"],
    install_requires=[
        "azure-core",
        "azure-identity",
        "azure-mgmt-recoveryservicessiterecovery>=1.2.0",
        "colorama",
        "PyYAML>=3.10",
    ],
    extras_require={"test": ["pytest", "pytest-mock"]},
    entry_points={
        "console_scripts": [
            "azcmdlet = azcmdlet.cli:main",
        ]
    },
)
