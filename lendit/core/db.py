import logging
from sqlalchemy import create_engine, BigInteger, Integer
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from lendit.configs import DB_URI, DEBUG

logger = logging.getLogger(__name__)

# SQLite only autoincrements INTEGER PRIMARY KEY columns
Identifier = BigInteger().with_variant(Integer, "sqlite")


def make_engine(uri=DB_URI):
    engine_kwargs = {'echo': DEBUG}
    if uri.startswith('sqlite'):
        if ':memory:' in uri:
            # One shared connection so every thread sees the same database
            engine_kwargs['poolclass'] = StaticPool
            engine_kwargs['connect_args'] = {'check_same_thread': False}
    else:
        engine_kwargs['client_encoding'] = 'utf8'
    return create_engine(uri, **engine_kwargs)


engine = make_engine()
session = scoped_session(sessionmaker(
    bind=engine, autocommit=False, autoflush=False, expire_on_commit=False))


class LenditBase:
    @classmethod
    def get_many(cls, offset=None, limit=None):
        return session.query(cls).order_by(cls.id).offset(offset).limit(limit).all()

    @classmethod
    def get(cls, record_id):
        return session.get(cls, record_id)


Base = declarative_base(cls=LenditBase)


def bind(new_engine):
    """Points the thread-local session registry at another engine."""
    session.remove()
    session.configure(bind=new_engine)
    return session


def init(engine_to_init=None):
    try:
        Base.metadata.create_all(bind=engine_to_init or engine)
        return session
    except Exception as e:
        logger.warning(f"[WARNING] Database initialization failed: {e}")
