from __future__ import annotations
import json
import math
import re
import uuid
from typing import Any, List, Optional, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import LengthMismatch
from .settings import settings


class QuizQuestion(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: str
	prompt: str = Field(validation_alias=AliasChoices("prompt", "question"))
	options: List[str] = Field(min_length=2)
	correct_option_index: int = Field(
		ge=0,
		validation_alias=AliasChoices("correct_option_index", "correctAnswer", "answer_index"),
	)

	@model_validator(mode="after")
	def _index_in_bounds(self) -> "QuizQuestion":
		if self.correct_option_index >= len(self.options):
			raise ValueError(
				f"correct_option_index {self.correct_option_index} out of range for {len(self.options)} options"
			)
		return self


class Quiz(BaseModel):
	id: str
	course_id: str
	title: str
	# Minimum number of correct answers needed to pass
	passing_score: int = Field(ge=0)
	questions: List[QuizQuestion]


class QuizAttempt(BaseModel):
	selected_indices: List[Optional[int]]
	score: int
	total: int
	passing_threshold: int
	passed: bool
	correct: List[bool]


def default_passing_threshold(question_count: int, ratio: Optional[float] = None) -> int:
	ratio = settings.quiz_passing_ratio if ratio is None else ratio
	# round first so 10 * 0.6 cannot land on 6.000000000000001
	return math.ceil(round(question_count * ratio, 9))


def score_quiz(
	questions: Sequence[QuizQuestion],
	selected_indices: Sequence[Optional[int]],
	passing_threshold: Optional[int] = None,
) -> QuizAttempt:
	"""Count answers matching each question's correct option.

	``None`` in ``selected_indices`` means the question was skipped. When no
	threshold is given the default ratio of the question count is used.
	"""
	if len(questions) != len(selected_indices):
		raise LengthMismatch(len(questions), len(selected_indices))
	correct = [
		selected is not None and selected == question.correct_option_index
		for question, selected in zip(questions, selected_indices)
	]
	score = sum(correct)
	if passing_threshold is None:
		passing_threshold = default_passing_threshold(len(questions))
	return QuizAttempt(
		selected_indices=list(selected_indices),
		score=score,
		total=len(questions),
		passing_threshold=passing_threshold,
		passed=score >= passing_threshold,
		correct=correct,
	)


def _extract_json_array(text: str) -> List[Any]:
	try:
		data = json.loads(text)
	except ValueError:
		# Models sometimes wrap the array in markdown or prose
		match = re.search(r"\[[\s\S]*\]", text)
		if not match:
			raise ValueError("no JSON array in model output") from None
		data = json.loads(match.group(0))
	if isinstance(data, dict) and isinstance(data.get("questions"), list):
		data = data["questions"]
	if not isinstance(data, list):
		raise ValueError("expected a JSON array of questions")
	return data


def parse_generated_questions(text: str) -> List[QuizQuestion]:
	items = _extract_json_array(text)
	if not items:
		raise ValueError("model returned no questions")
	questions: List[QuizQuestion] = []
	seen: set[str] = set()
	for i, item in enumerate(items):
		if not isinstance(item, dict):
			raise ValueError(f"question {i} is not an object")
		qid = str(item.get("id") or "").strip()
		if not qid or qid in seen:
			qid = uuid.uuid4().hex
		seen.add(qid)
		try:
			questions.append(QuizQuestion.model_validate({**item, "id": qid}))
		except ValidationError as e:
			raise ValueError(f"question {i} is invalid: {e}") from e
	return questions
