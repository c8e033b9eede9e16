from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .dates import DateLike, day_diff, parse_date


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakDecision:
	streak: int
	last_login_date: date
	# False for a repeat login on the same day; nothing needs to be written
	changed: bool


def decide_streak(previous_streak: int, previous_last_login: Optional[DateLike], today: DateLike) -> StreakDecision:
	"""Work out the streak to store after a login on ``today``.

	Same day: unchanged. No previous login: 1. Yesterday: previous + 1.
	Any other gap, including a login dated before the stored one: reset to 1.
	"""
	if previous_streak < 0:
		raise ValueError("previous_streak must be non-negative")
	today_d = parse_date(today)
	if previous_last_login is None:
		return StreakDecision(streak=1, last_login_date=today_d, changed=True)
	last_d = parse_date(previous_last_login)
	if last_d == today_d:
		return StreakDecision(streak=previous_streak, last_login_date=last_d, changed=False)
	gap = day_diff(last_d, today_d)
	if gap == 1:
		return StreakDecision(streak=previous_streak + 1, last_login_date=today_d, changed=True)
	if gap < 0:
		logger.warning("Last login %s is after today %s; resetting streak", last_d, today_d)
	return StreakDecision(streak=1, last_login_date=today_d, changed=True)
