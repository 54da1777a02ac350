#!/usr/bin/env python

"""
    Core module for Lendit: database, models and the lending engine

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from lendit.core import db as database
from lendit.core import models

session = database.init()

__all__ = ["session", "database", "models"]
