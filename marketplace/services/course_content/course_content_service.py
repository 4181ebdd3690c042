"""
Course Content Reconciliation Service

Applies a submitted course outline (sections with their lectures) to the
persisted state of a course.

Workflow:
1. Update the scalar course fields that were supplied and changed
2. Validate every submitted section/lecture id against the course
3. Update existing sections and lectures in place (only when changed)
4. Create new sections and lectures
5. Delete sections and lectures missing from the outline; their stored
   videos are removed once the transaction has committed
6. Resolve uploaded video files to lectures and store them
7. Store a new thumbnail

Everything runs in one ``transaction.atomic()`` block: any failure leaves
the course exactly as it was before the call.

Media coordinates
-----------------
Uploaded videos are addressed as ``videos[<sectionKey>][<lectureKey>]``:

- existing lecture: ``[sectionId][lectureId]``
- new lecture in an existing section: ``[sectionId][n]``
- new lecture in a new section: ``[m][n]``

where ``m`` counts the new sections of the request and ``n`` counts the new
lectures of a section, both starting at 0. Coordinates are resolved once the
new rows have ids.

Author: AgTeach Development Team
Version: 1.0.0
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from django.db import connection, transaction

from core.exceptions import ExternalServiceException, ValidationException

from ...courses.models import Course, Lecture, Section, default_video_url
from ..cloud_storage import ObjectStorageService

logger = logging.getLogger(__name__)

VIDEO_FIELD_PATTERN = re.compile(r"^videos\[([^\[\]]+)\]\[([^\[\]]+)\]$")

VIDEO_CONTENT_TYPE = "video/mp4"
THUMBNAIL_CONTENT_TYPE = "image/jpeg"

COURSE_FIELDS = (
    "name",
    "description",
    "course_objective",
    "price",
    "number_of_video",
    "duration",
)

Coordinate = Tuple[str, str]


def lecture_video_key(course_id, section_id, lecture_id) -> str:
    return f"courses/{course_id}/section-{section_id}/lecture-{lecture_id}.mp4"


def thumbnail_key(course_id) -> str:
    return f"courses/{course_id}/thumbnail.jpeg"


def parse_video_field(field_name: str) -> Optional[Coordinate]:
    """Return the ``(sectionKey, lectureKey)`` of a ``videos[..][..]`` field name."""
    match = VIDEO_FIELD_PATTERN.match(field_name)
    if not match:
        return None
    return match.group(1), match.group(2)


@dataclass
class SubmittedLecture:
    """A lecture of the submitted outline; ``lecture_id`` is None for new lectures."""

    name: str
    duration: str = "00:00:00"
    lecture_id: Optional[int] = None

    @property
    def is_new(self) -> bool:
        return self.lecture_id is None


@dataclass
class SubmittedSection:
    """A section of the submitted outline; ``section_id`` is None for new sections."""

    name: str
    lectures: List[SubmittedLecture] = field(default_factory=list)
    section_id: Optional[int] = None

    @property
    def is_new(self) -> bool:
        return self.section_id is None


@dataclass
class ReconciliationResult:
    """Counts of the changes applied to one course."""

    course_updated: bool = False
    sections_created: int = 0
    sections_updated: int = 0
    sections_deleted: int = 0
    lectures_created: int = 0
    lectures_updated: int = 0
    lectures_deleted: int = 0
    videos_uploaded: int = 0
    videos_deleted: int = 0
    files_ignored: int = 0
    thumbnail_uploaded: bool = False

    @property
    def row_changes(self) -> int:
        """Number of created, updated and deleted section/lecture rows."""
        return (
            self.sections_created + self.sections_updated + self.sections_deleted
            + self.lectures_created + self.lectures_updated + self.lectures_deleted
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CourseContentReconciler:
    """
    Diff and apply a course outline.

    Attributes:
        storage: Object storage used for lecture videos and thumbnails
    """

    def __init__(self, storage: Optional[ObjectStorageService] = None):
        self._storage = storage

    @property
    def storage(self) -> ObjectStorageService:
        if self._storage is None:
            self._storage = ObjectStorageService()
        return self._storage

    def create_course(
        self,
        instructor,
        fields: Mapping[str, Any],
        sections: List[SubmittedSection],
        files: Optional[Mapping[str, Any]] = None,
        thumbnail=None,
    ) -> Tuple[Course, ReconciliationResult]:
        """
        Create a course together with its whole outline.

        Every section and lecture is new, so videos are addressed by
        ``[sectionIndex][lectureIndex]``. The video of the first lecture
        becomes the preview video of the course.
        """
        if any(not s.is_new or any(not l.is_new for l in s.lectures) for s in sections):
            raise ValidationException("A new course cannot reference existing sections or lectures.")

        with transaction.atomic():
            course = Course.objects.create(
                instructor=instructor,
                **{name: value for name, value in fields.items() if name in COURSE_FIELDS},
            )
            result = self.reconcile(course, sections, files=files, thumbnail=thumbnail)

            first_lecture = (
                Lecture.objects.filter(section__course=course)
                .order_by("section__position", "position", "pk")
                .first()
            )
            if first_lecture and first_lecture.video_url != course.preview_video_url:
                course.preview_video_url = first_lecture.video_url
                course.save(update_fields=["preview_video_url", "updated_at"])

        logger.info("Created course %s with %d sections", course.pk, result.sections_created)
        return course, result

    def reconcile(
        self,
        course: Course,
        sections: Optional[List[SubmittedSection]],
        fields: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
        thumbnail=None,
    ) -> ReconciliationResult:
        """
        Make the persisted outline of ``course`` equal to ``sections``.

        Args:
            course: Course to update
            sections: Full desired outline in display order; None leaves the
                outline untouched (videos of existing lectures can still be replaced)
            fields: Scalar course fields to update (model field names)
            files: Uploaded files keyed by form field name
            thumbnail: Optional new thumbnail file

        Returns:
            ReconciliationResult with the applied changes

        Raises:
            ValidationException: Foreign or duplicated ids, ambiguous coordinates
            ExternalServiceException: Video or thumbnail upload failed
        """
        result = ReconciliationResult()

        with transaction.atomic():
            result.course_updated = self._update_course_fields(course, fields or {})

            if sections is None:
                coordinates = {
                    (str(lecture.section_id), str(lecture.pk)): lecture
                    for lecture in Lecture.objects.filter(section__course=course)
                }
                ambiguous = set()
            else:
                coordinates, ambiguous = self._reconcile_outline(course, sections, result)

            self._store_videos(course, files or {}, coordinates, ambiguous, result)

            if thumbnail is not None:
                course.thumbnail_url = self.storage.put_object(
                    thumbnail_key(course.pk),
                    thumbnail,
                    getattr(thumbnail, "content_type", None) or THUMBNAIL_CONTENT_TYPE,
                )
                course.save(update_fields=["thumbnail_url", "updated_at"])
                result.thumbnail_uploaded = True

        logger.info("Reconciled course %s: %s", course.pk, result.to_dict())
        return result

    def _reconcile_outline(self, course, sections, result):
        """Apply the section/lecture diff and return the media coordinate map."""
        existing_sections = {s.pk: s for s in Section.objects.filter(course=course)}
        existing_lectures = {l.pk: l for l in Lecture.objects.filter(section__course=course)}
        self._validate_ids(course, sections, existing_sections, existing_lectures)

        requested_section_ids = {s.section_id for s in sections if not s.is_new}
        requested_lecture_ids = {
            l.lecture_id for s in sections for l in s.lectures if not l.is_new
        }
        sections_to_delete = [pk for pk in existing_sections if pk not in requested_section_ids]
        lectures_to_delete = [
            lecture for pk, lecture in existing_lectures.items()
            if pk not in requested_lecture_ids
        ]

        coordinates: Dict[Coordinate, Lecture] = {}
        ambiguous = set()
        new_lectures: List[Tuple[Coordinate, Lecture]] = []

        new_section_index = 0
        for position, submitted in enumerate(sections):
            if submitted.is_new:
                section = Section.objects.create(
                    course=course,
                    instructor=course.instructor,
                    name=submitted.name,
                    position=position,
                )
                section_key = str(new_section_index)
                new_section_index += 1
                result.sections_created += 1
            else:
                section = existing_sections[submitted.section_id]
                if self._apply_changes(section, name=submitted.name, position=position):
                    result.sections_updated += 1
                section_key = str(section.pk)

            new_lecture_index = 0
            for lecture_position, submitted_lecture in enumerate(submitted.lectures):
                if submitted_lecture.is_new:
                    lecture = Lecture(
                        section=section,
                        instructor=course.instructor,
                        name=submitted_lecture.name,
                        duration=submitted_lecture.duration,
                        position=lecture_position,
                        video_url=default_video_url(),
                    )
                    new_lectures.append(((section_key, str(new_lecture_index)), lecture))
                    new_lecture_index += 1
                    continue

                lecture = existing_lectures[submitted_lecture.lecture_id]
                changed = self._apply_changes(
                    lecture,
                    name=submitted_lecture.name,
                    duration=submitted_lecture.duration,
                    position=lecture_position,
                    section_id=section.pk,
                )
                if changed:
                    result.lectures_updated += 1
                self._claim(coordinates, ambiguous, (str(section.pk), str(lecture.pk)), lecture)

        # Moved lectures were re-parented above, so section cascades only hit removed rows
        self._schedule_video_deletes(lectures_to_delete, result)
        if lectures_to_delete:
            Lecture.objects.filter(pk__in=[l.pk for l in lectures_to_delete]).delete()
            result.lectures_deleted = len(lectures_to_delete)
        if sections_to_delete:
            Section.objects.filter(pk__in=sections_to_delete).delete()
            result.sections_deleted = len(sections_to_delete)

        if new_lectures:
            self._create_lectures([lecture for _, lecture in new_lectures])
            result.lectures_created = len(new_lectures)
            for coordinate, lecture in new_lectures:
                self._claim(coordinates, ambiguous, coordinate, lecture)

        return coordinates, ambiguous

    # --- helpers ---

    def _update_course_fields(self, course: Course, fields: Mapping[str, Any]) -> bool:
        unknown = set(fields) - set(COURSE_FIELDS)
        if unknown:
            raise ValidationException(f"Unknown course fields: {', '.join(sorted(unknown))}")
        return self._apply_changes(course, **fields)

    @staticmethod
    def _apply_changes(instance, **values) -> bool:
        """Assign changed values and save only those columns."""
        changed = [
            name for name, value in values.items()
            if value is not None and getattr(instance, name) != value
        ]
        if not changed:
            return False
        for name in changed:
            setattr(instance, name, values[name])
        instance.save(update_fields=changed + ["updated_at"])
        return True

    @staticmethod
    def _validate_ids(course, sections, existing_sections, existing_lectures) -> None:
        seen_sections = set()
        seen_lectures = set()
        for submitted in sections:
            if not submitted.is_new:
                if submitted.section_id not in existing_sections:
                    raise ValidationException(
                        f"Section {submitted.section_id} does not belong to course {course.pk}."
                    )
                if submitted.section_id in seen_sections:
                    raise ValidationException(
                        f"Section {submitted.section_id} is submitted more than once."
                    )
                seen_sections.add(submitted.section_id)

            for lecture in submitted.lectures:
                if lecture.is_new:
                    continue
                if lecture.lecture_id not in existing_lectures:
                    raise ValidationException(
                        f"Lecture {lecture.lecture_id} does not belong to course {course.pk}."
                    )
                if lecture.lecture_id in seen_lectures:
                    raise ValidationException(
                        f"Lecture {lecture.lecture_id} is submitted more than once."
                    )
                seen_lectures.add(lecture.lecture_id)

    @staticmethod
    def _claim(coordinates, ambiguous, coordinate: Coordinate, lecture: Lecture) -> None:
        if coordinate in coordinates:
            ambiguous.add(coordinate)
        else:
            coordinates[coordinate] = lecture

    def _create_lectures(self, lectures: List[Lecture]) -> List[Lecture]:
        if connection.features.can_return_rows_from_bulk_insert:
            return Lecture.objects.bulk_create(lectures)
        for lecture in lectures:
            lecture.save()
        return lectures

    def _schedule_video_deletes(self, lectures: List[Lecture], result: ReconciliationResult) -> None:
        """Queue the stored videos of deleted lectures for removal after commit."""
        keys = [
            key for key in (self.storage.key_from_url(lecture.video_url) for lecture in lectures)
            if key
        ]
        if keys:
            transaction.on_commit(lambda: self._delete_videos(keys))
        result.videos_deleted = len(keys)

    def _delete_videos(self, keys: List[str]) -> int:
        """Best-effort removal of stored videos; returns the number deleted."""
        deleted = 0
        for key in keys:
            try:
                self.storage.delete_object(key)
            except ExternalServiceException:
                logger.warning("Could not delete video %s", key)
                continue
            deleted += 1
        return deleted

    def _store_videos(self, course, files, coordinates, ambiguous, result) -> None:
        targets = {}
        for field_name in files:
            coordinate = parse_video_field(field_name)
            if coordinate is None:
                continue
            if coordinate in ambiguous:
                raise ValidationException(
                    f"Video {field_name} matches more than one lecture."
                )
            targets[field_name] = coordinate

        for field_name, coordinate in targets.items():
            upload = files[field_name]
            lecture = coordinates.get(coordinate)
            if lecture is None:
                logger.warning("Video %s matches no lecture of course %s", field_name, course.pk)
                result.files_ignored += 1
                continue

            lecture.video_url = self.storage.put_object(
                lecture_video_key(course.pk, lecture.section_id, lecture.pk),
                upload,
                getattr(upload, "content_type", None) or VIDEO_CONTENT_TYPE,
            )
            lecture.save(update_fields=["video_url", "updated_at"])
            result.videos_uploaded += 1
