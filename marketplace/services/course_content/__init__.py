from .course_content_service import (
    CourseContentReconciler,
    ReconciliationResult,
    SubmittedLecture,
    SubmittedSection,
    lecture_video_key,
    parse_video_field,
    thumbnail_key,
)

__all__ = [
    "CourseContentReconciler",
    "ReconciliationResult",
    "SubmittedLecture",
    "SubmittedSection",
    "lecture_video_key",
    "parse_video_field",
    "thumbnail_key",
]
