from __future__ import annotations
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

from .quiz import Quiz, QuizQuestion


class Course(BaseModel):
	id: str
	title: str
	description: str
	duration: str
	total_lectures: int
	difficulty: Literal["beginner", "intermediate", "advanced"]
	category: str
	thumbnail: str


class Video(BaseModel):
	id: str
	course_id: str
	title: str
	duration: str
	thumbnail: str
	video_url: Optional[str] = None
	summary: str = ""


class Flashcard(BaseModel):
	id: str
	video_id: str
	front: str
	back: str


COURSES: List[Course] = [
	Course(
		id="maths-12",
		title="Mathematics - 12th Standard",
		description="Complete maths course covering calculus, algebra, and statistics for 12th standard students.",
		duration="45 hours",
		total_lectures=120,
		difficulty="advanced",
		category="Mathematics",
		thumbnail="/images/courses/maths.jpg",
	),
	Course(
		id="ipdc-college",
		title="IPDC - College Level",
		description="Interpersonal Development and Communication course for college students.",
		duration="20 hours",
		total_lectures=48,
		difficulty="intermediate",
		category="Soft Skills",
		thumbnail="/images/courses/ipdc.jpg",
	),
	Course(
		id="sst-10",
		title="Social Studies - 10th Standard",
		description="Comprehensive social studies covering history, civics, geography, and economics.",
		duration="30 hours",
		total_lectures=80,
		difficulty="intermediate",
		category="Social Studies",
		thumbnail="/images/courses/sst.jpg",
	),
	Course(
		id="science-featured",
		title="Science Fundamentals",
		description="Master the basics of physics, chemistry, and biology with interactive lessons.",
		duration="35 hours",
		total_lectures=95,
		difficulty="beginner",
		category="Science",
		thumbnail="/images/courses/science.jpg",
	),
	Course(
		id="english-tech",
		title="English for Technical Communication",
		description="Master the art of technical writing, presentations, and professional communication in the engineering and tech industry.",
		duration="25 hours",
		total_lectures=60,
		difficulty="intermediate",
		category="English",
		thumbnail="/images/courses/english.jpg",
	),
]

FEATURED_COUNT = 4

VIDEOS: List[Video] = [
	Video(
		id="v1",
		course_id="maths-12",
		title="Introduction to Calculus",
		duration="15:30",
		thumbnail="/images/videos/calc-intro.jpg",
		video_url="https://www.youtube.com/embed/j1y8ffZZP6k",
		summary="Learn the fundamental concepts of calculus including limits and derivatives.",
	),
	Video(
		id="v2",
		course_id="maths-12",
		title="Differential Equations",
		duration="22:45",
		thumbnail="/images/videos/diff-eq.jpg",
		video_url="https://www.youtube.com/embed/4r-0JSfGez4",
		summary="Understanding differential equations and their applications.",
	),
	Video(
		id="v3",
		course_id="maths-12",
		title="Integration Techniques",
		duration="18:20",
		thumbnail="/images/videos/integration.jpg",
		video_url="https://www.youtube.com/embed/yY2oUKVAkdY",
		summary="Master various integration techniques including substitution and parts.",
	),
	Video(
		id="v4",
		course_id="english-tech",
		title="Introduction to Technical Writing",
		duration="15:45",
		thumbnail="/images/videos/english-1.jpg",
		summary="Introduction to the core principles of technical communication and writing.",
	),
]

# Every video currently shares the calculus starter deck
_STARTER_DECK = [
	("f1", "What is a derivative?", "The rate of change of a function at a point."),
	("f2", "What is an integral?", "The reverse operation of differentiation; finds the area under a curve."),
	("f3", "What is a limit?", "The value a function approaches as the input approaches a given value."),
]


def get_courses(featured: bool = False) -> List[Course]:
	return COURSES[:FEATURED_COUNT] if featured else list(COURSES)


def get_course(course_id: str) -> Optional[Course]:
	for course in COURSES:
		if course.id == course_id:
			return course
	return None


def get_course_videos(course_id: str) -> List[Video]:
	return [v for v in VIDEOS if v.course_id == course_id]


def get_video(video_id: str) -> Optional[Video]:
	for video in VIDEOS:
		if video.id == video_id:
			return video
	return None


def get_flashcards(video_id: str) -> Optional[List[Flashcard]]:
	if get_video(video_id) is None:
		return None
	return [Flashcard(id=fid, video_id=video_id, front=front, back=back) for fid, front, back in _STARTER_DECK]


# ---- Quizzes ----

def _q(qid: str, prompt: str, options: list[str], answer: int) -> QuizQuestion:
	return QuizQuestion(id=qid, prompt=prompt, options=options, correct_option_index=answer)


QUIZZES: Dict[str, Quiz] = {
	"quiz-maths-1": Quiz(
		id="quiz-maths-1",
		course_id="maths-12",
		title="Calculus Fundamentals Quiz",
		passing_score=6,
		questions=[
			_q("q1", "What is the derivative of x²?", ["x", "2x", "2x²", "x/2"], 1),
			_q("q2", "What is the integral of 2x?", ["x", "x²", "2x²", "x² + C"], 3),
			_q("q3", "What is lim(x→0) sin(x)/x?", ["0", "1", "∞", "undefined"], 1),
			_q("q4", "The derivative of e^x is:", ["e", "x·e^(x-1)", "e^x", "e^(x+1)"], 2),
			_q("q5", "What is d/dx(ln x)?", ["x", "1/x", "ln(x)", "e^x"], 1),
			_q("q6", "The integral of 1/x is:", ["x", "x²", "ln|x| + C", "1/x²"], 2),
			_q("q7", "What is the derivative of sin(x)?", ["cos(x)", "-cos(x)", "sin(x)", "-sin(x)"], 0),
			_q(
				"q8",
				"The chain rule is used for:",
				["Adding functions", "Composite functions", "Multiplying functions", "Dividing functions"],
				1,
			),
			_q("q9", "What is d/dx(x³)?", ["x²", "3x", "3x²", "x³"], 2),
			_q("q10", "The integral of cos(x) is:", ["sin(x) + C", "-sin(x) + C", "cos(x) + C", "-cos(x) + C"], 0),
		],
	),
}


def get_quiz(quiz_id: str) -> Optional[Quiz]:
	return QUIZZES.get(quiz_id)


def get_quiz_by_course(course_id: str) -> Optional[Quiz]:
	for quiz in QUIZZES.values():
		if quiz.course_id == course_id:
			return quiz
	return None
