# -*- coding: utf-8 -*-
"""Define project metadata
"""

__title__ = "aliasfs"
__summary__ = "A content-addressed file store with human-facing aliases."
__url__ = ""

__version__ = "0.1.0"

__install_requires__ = [
    "fs>=2.4.16",
    "pydantic-settings>=2.0",
    "SQLAlchemy>=2.0",
    # fs still declares its namespace through pkg_resources.
    "setuptools<81",
]
__tests_require__ = ["pytest"]

__author__ = "Derrick Gilland"
__email__ = "dgilland@gmail.com"

__license__ = "MIT License"
