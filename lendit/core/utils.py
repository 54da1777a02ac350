import datetime
import math


def utcnow() -> datetime.datetime:
    """Naive UTC wall clock used for every stored timestamp."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def days(n: int) -> datetime.timedelta:
    return datetime.timedelta(days=n)


def ceil_div(numerator: int, denominator: int) -> int:
    return math.ceil(numerator / denominator) if denominator else 0


def as_naive_utc(moment: datetime.datetime) -> datetime.datetime:
    """Converts an offset-aware timestamp to the naive UTC form stored in
    the database. Naive input is taken to be UTC already.
    """
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(datetime.timezone.utc).replace(tzinfo=None)
