#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.conftest
    ~~~~~~~~~~~~~~

    Shared fixtures: a throwaway SQLite database bound to the engine's
    thread-local session, a controllable clock and a notification sink.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import os
os.environ.setdefault("TESTING", "true")

import datetime
import pytest
from sqlalchemy import create_engine
from lendit.core import db as database
from lendit.core import utils
from lendit.core.db import Base
from lendit.core.notifications import notifier


class Clock:

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **delta):
        self.now += datetime.timedelta(**delta)
        return self.now


@pytest.fixture
def db_session(tmp_path):
    # A file database so worker threads get connections of their own
    engine = create_engine(
        f"sqlite:///{tmp_path / 'lendit.db'}",
        connect_args={"check_same_thread": False})
    session = database.bind(engine)
    Base.metadata.create_all(engine)
    try:
        yield session
    finally:
        session.remove()
        Base.metadata.drop_all(engine)
        engine.dispose()
        database.bind(database.engine)


@pytest.fixture
def clock(monkeypatch):
    clock = Clock(datetime.datetime(2025, 3, 1, 12, 0, 0))
    monkeypatch.setattr(utils, "utcnow", clock)
    return clock


@pytest.fixture
def events():
    received = []
    notifier.subscribe(received.append)
    yield received
    notifier.unsubscribe(received.append)


@pytest.fixture
def reload(db_session):
    """Fetches a fresh copy of a row, bypassing the session cache."""
    def _reload(model, record_id):
        db_session.expire_all()
        return db_session.get(model, record_id)
    return _reload
