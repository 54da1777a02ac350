#!/usr/bin/env python

"""
    Lendit, a lending and reservation engine for shared collections

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

__version__ = '0.1.0'
