from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..catalog import get_course, get_course_videos, get_quiz, get_quiz_by_course
from ..errors import LengthMismatch
from ..gemini_client import GeminiClient
from ..quiz import (
    QuizAttempt,
    QuizQuestion,
    default_passing_threshold,
    parse_generated_questions,
    score_quiz,
)
from ..settings import settings
from .auth import User, get_current_user


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["quiz"])


DEFAULT_FEEDBACK = "Great effort! Keep practicing to master these concepts."


class QuestionOut(BaseModel):
    id: str
    prompt: str
    options: List[str]


class QuizOut(BaseModel):
    id: str
    course_id: str
    title: str
    passing_score: int
    questions: List[QuestionOut]


class SubmitRequest(BaseModel):
    selected_indices: List[Optional[int]]


class VideoTopic(BaseModel):
    title: str
    summary: str = ""


class GenerateRequest(BaseModel):
    # Either a catalog course id or a free-form title (or both)
    course_id: Optional[str] = None
    course_title: Optional[str] = None
    videos: List[VideoTopic] = Field(default_factory=list)
    count: Optional[int] = Field(default=None, ge=1, le=50)


class GenerateResponse(BaseModel):
    questions: List[QuizQuestion]
    passing_threshold: int


class ScoreRequest(BaseModel):
    questions: List[QuizQuestion] = Field(min_length=1)
    selected_indices: List[Optional[int]]
    passing_threshold: Optional[int] = Field(default=None, ge=0)


class FeedbackRequest(BaseModel):
    course_title: str
    topics: List[str] = Field(default_factory=list)
    score: int = Field(ge=0)
    total: int = Field(ge=1)


class FeedbackResponse(BaseModel):
    feedback: str
    generated: bool


def _build_quiz_prompt(course_title: str, videos: List[VideoTopic], count: int) -> str:
    video_context = "\n".join(f"- {v.title}: {v.summary}" for v in videos) or "- General course material"
    return f"""
You are an expert {course_title} examiner. Generate exactly {count} high-quality multiple-choice questions based on the following course videos:
{video_context}

Each question must have 4 options and exactly one correct answer.
Output STRICTLY a JSON array, no markdown, no commentary.
Each object must be exactly:
{{
  "id": "unique_string_id",
  "question": "The question text",
  "options": ["Option A", "Option B", "Option C", "Option D"],
  "correctAnswer": index_of_correct_option_0_to_3
}}
""".strip()


def _build_feedback_prompt(req: FeedbackRequest) -> str:
    topics = ", ".join(req.topics) or req.course_title
    return (
        f"The student just completed a quiz on {req.course_title} (topics: {topics}).\n"
        f"They scored {req.score} out of {req.total}.\n"
        "Provide a brief, encouraging feedback message (max 3-4 sentences).\n"
        "Include 2 specific bullet points on how they can improve based on this score.\n"
        "Use bold markdown for emphasis."
    )


def _resolve_course(req: GenerateRequest) -> Tuple[str, List[VideoTopic]]:
    title = (req.course_title or "").strip()
    videos = list(req.videos)
    if req.course_id:
        course = get_course(req.course_id)
        if course is None:
            raise HTTPException(status_code=404, detail="course not found")
        title = title or course.title
        if not videos:
            videos = [VideoTopic(title=v.title, summary=v.summary) for v in get_course_videos(course.id)]
    if not title:
        raise HTTPException(status_code=400, detail="course_id or course_title is required")
    return title, videos


def _attempt_or_400(questions, selected, threshold) -> QuizAttempt:
    try:
        return score_quiz(questions, selected, threshold)
    except LengthMismatch as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/course/{course_id}", response_model=QuizOut)
def quiz_for_course(course_id: str, user: User = Depends(get_current_user)):
    quiz = get_quiz_by_course(course_id)
    if quiz is None:
        raise HTTPException(status_code=404, detail="no quiz for this course")
    return QuizOut(
        id=quiz.id,
        course_id=quiz.course_id,
        title=quiz.title,
        passing_score=quiz.passing_score,
        questions=[QuestionOut(id=q.id, prompt=q.prompt, options=q.options) for q in quiz.questions],
    )


@router.post("/{quiz_id}/submit", response_model=QuizAttempt)
def submit_quiz(quiz_id: str, req: SubmitRequest, user: User = Depends(get_current_user)):
    quiz = get_quiz(quiz_id)
    if quiz is None:
        raise HTTPException(status_code=404, detail="quiz not found")
    attempt = _attempt_or_400(quiz.questions, req.selected_indices, quiz.passing_score)
    logger.info("User %s scored %d/%d on %s", user.id, attempt.score, attempt.total, quiz_id)
    return attempt


@router.post("/score", response_model=QuizAttempt)
def score(req: ScoreRequest, user: User = Depends(get_current_user)):
    return _attempt_or_400(req.questions, req.selected_indices, req.passing_threshold)


@router.post("/generate", response_model=GenerateResponse)
async def generate_quiz(req: GenerateRequest, user: User = Depends(get_current_user)):
    count = req.count or settings.quiz_generated_count
    title, videos = _resolve_course(req)
    prompt = _build_quiz_prompt(title, videos, count)
    try:
        client = GeminiClient()
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))

    last_error: Optional[Exception] = None
    try:
        for attempt in range(max(1, settings.quiz_generation_attempts)):
            try:
                raw = await client.generate(prompt, json_output=True, temperature=0.7)
                questions = parse_generated_questions(raw)
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 503:
                    raise HTTPException(status_code=503, detail="AI service unavailable, try again later")
                last_error = e
            except (httpx.HTTPError, RuntimeError, ValueError) as e:
                last_error = e
            else:
                return GenerateResponse(
                    questions=questions,
                    passing_threshold=default_passing_threshold(len(questions)),
                )
            logger.warning("Quiz generation attempt %d failed: %s", attempt + 1, last_error)
    finally:
        await client.aclose()
    raise HTTPException(status_code=502, detail=f"could not generate a quiz: {last_error}")


@router.post("/feedback", response_model=FeedbackResponse)
async def feedback(req: FeedbackRequest, user: User = Depends(get_current_user)):
    if req.score > req.total:
        raise HTTPException(status_code=400, detail="score cannot exceed total")
    try:
        client = GeminiClient()
    except ValueError:
        return FeedbackResponse(feedback=DEFAULT_FEEDBACK, generated=False)
    try:
        text = (await client.generate(_build_feedback_prompt(req))).strip()
    except (httpx.HTTPError, RuntimeError, ValueError, KeyError, IndexError, TypeError) as e:
        logger.error("Feedback generation failed: %s", e)
        return FeedbackResponse(feedback=DEFAULT_FEEDBACK, generated=False)
    finally:
        await client.aclose()
    return FeedbackResponse(feedback=text or DEFAULT_FEEDBACK, generated=bool(text))
