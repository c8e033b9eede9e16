from typing import List

from fastapi import APIRouter, HTTPException

from ..catalog import Course, Flashcard, Video, get_course, get_course_videos, get_courses, get_flashcards

router = APIRouter(tags=["courses"])


@router.get("/courses", response_model=List[Course])
def list_courses(featured: bool = False):
	return get_courses(featured=featured)


@router.get("/courses/{course_id}", response_model=Course)
def course_detail(course_id: str):
	course = get_course(course_id)
	if course is None:
		raise HTTPException(status_code=404, detail="course not found")
	return course


@router.get("/courses/{course_id}/videos", response_model=List[Video])
def course_videos(course_id: str):
	if get_course(course_id) is None:
		raise HTTPException(status_code=404, detail="course not found")
	return get_course_videos(course_id)


@router.get("/videos/{video_id}/flashcards", response_model=List[Flashcard])
def video_flashcards(video_id: str):
	cards = get_flashcards(video_id)
	if cards is None:
		raise HTTPException(status_code=404, detail="video not found")
	return cards
