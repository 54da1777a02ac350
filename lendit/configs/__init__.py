#!/usr/bin/env python

"""
    Configurations for Lendit

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import os


# Determine environment
TESTING = os.getenv("TESTING", "false").lower() == "true"

# API server configuration
HOST = os.environ.get('LENDIT_HOST', 'localhost')
PORT = int(os.environ.get('LENDIT_PORT', 8080))
WORKERS = int(os.environ.get('LENDIT_WORKERS', 1))
DEBUG = bool(int(os.environ.get('LENDIT_DEBUG', 0)))
LOG_LEVEL = os.environ.get('LENDIT_LOG_LEVEL', 'info')
SSL_CRT = os.environ.get('LENDIT_SSL_CRT')
SSL_KEY = os.environ.get('LENDIT_SSL_KEY')
LENDIT_HTTP_HEADERS = {"User-Agent": "LenditClient/1.0"}

# Patron capability tokens
SEED = os.environ.get('LENDIT_SEED', 'lendit-dev-seed')
TOKEN_TTL = int(os.environ.get('LENDIT_TOKEN_TTL', 604800))

# Hosts allowed to call the catalog hooks and mint patron tokens
LIBRARIAN_HOSTS = {
    h.strip() for h in
    os.environ.get('LENDIT_LIBRARIAN_HOSTS', '127.0.0.1,::1,localhost').split(',')
    if h.strip()
}

# Lending policy
DEFAULT_LOAN_PERIOD_DAYS = int(os.environ.get('LENDIT_LOAN_PERIOD_DAYS', 21))
DEFAULT_MAX_RENEWALS = int(os.environ.get('LENDIT_MAX_RENEWALS', 2))
HOLD_READY_DAYS = int(os.environ.get('LENDIT_HOLD_READY_DAYS', 7))

# Seconds a request waits for an item's exclusive section before failing Busy
LOCK_TIMEOUT = float(os.environ.get('LENDIT_LOCK_TIMEOUT', 5))
BUSY_RETRY_AFTER = int(os.environ.get('LENDIT_BUSY_RETRY_AFTER', 1))

# Seconds between background sweeps; 0 disables the sweeper
SWEEP_INTERVAL = int(os.environ.get('LENDIT_SWEEP_INTERVAL', 900))

OPTIONS = {
    'host': HOST,
    'port': PORT,
    'log_level': LOG_LEVEL,
    'reload': DEBUG,
    'workers': WORKERS,
}
if SSL_CRT and SSL_KEY:
    OPTIONS['ssl_keyfile'] = SSL_KEY
    OPTIONS['ssl_certfile'] = SSL_CRT

DB_CONFIG = {
    'user': os.environ.get('DB_USER', 'postgres'),
    'password': os.environ.get('DB_PASSWORD'),
    'host': os.environ.get('DB_HOST', 'localhost'),
    'port': int(os.environ.get('DB_PORT', '5432')),
    'dbname': os.environ.get('DB_NAME', 'lendit'),
}

# Database configuration
DB_URI = os.environ.get('LENDIT_DB_URI') or (
    "sqlite:///:memory:" if TESTING else
    'postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}'.format(**DB_CONFIG)
)

__all__ = [
    'HOST', 'PORT', 'DEBUG', 'OPTIONS', 'DB_URI', 'DB_CONFIG', 'TESTING',
    'HOLD_READY_DAYS', 'LOCK_TIMEOUT', 'SWEEP_INTERVAL', 'SEED', 'TOKEN_TTL',
]
