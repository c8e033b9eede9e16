from __future__ import annotations
from typing import Any, Dict


class StudyAppError(ValueError):
	"""Base class for domain errors raised by the core modules."""


class InvalidDate(StudyAppError):
	def __init__(self, value: Any) -> None:
		self.value = value
		super().__init__(f"invalid date {value!r}, expected YYYY-MM-DD")


class ValidationFailed(StudyAppError):
	def __init__(self, errors: Dict[str, str]) -> None:
		self.errors = dict(errors)
		super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class LengthMismatch(StudyAppError):
	def __init__(self, questions: int, answers: int) -> None:
		self.questions = questions
		self.answers = answers
		super().__init__(f"got {answers} answers for {questions} questions")


class InvalidTransition(StudyAppError):
	pass


class ProfileStoreError(StudyAppError):
	pass
