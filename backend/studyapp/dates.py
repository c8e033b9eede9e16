from __future__ import annotations
import re
from datetime import date, datetime, timezone
from typing import Union

from .errors import InvalidDate


DateLike = Union[date, str]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value: DateLike) -> date:
	# datetime is a date subclass; reduce it to its UTC calendar day
	if isinstance(value, datetime):
		if value.tzinfo is not None:
			value = value.astimezone(timezone.utc)
		return value.date()
	if isinstance(value, date):
		return value
	if not isinstance(value, str) or not _ISO_DATE.match(value.strip()):
		raise InvalidDate(value)
	try:
		return datetime.strptime(value.strip(), "%Y-%m-%d").date()
	except ValueError:
		raise InvalidDate(value) from None


def day_diff(first: DateLike, second: DateLike) -> int:
	"""Signed number of whole days from ``first`` to ``second``.

	Both sides are calendar dates, so the result is exact across month,
	year and leap-year boundaries and never depends on local time.
	"""
	return (parse_date(second) - parse_date(first)).days


def utc_today() -> date:
	return datetime.now(timezone.utc).date()
