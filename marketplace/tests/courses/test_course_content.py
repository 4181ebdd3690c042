"""
Course content reconciliation tests.

Covers the outline diff (update, create, delete, move), media coordinate
resolution and the all-or-nothing behaviour of a reconciliation.
"""

from decimal import Decimal
from unittest.mock import patch

from botocore.exceptions import ClientError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import TestCase

from core.exceptions import ExternalServiceException, ValidationException
from marketplace.models import Course, Lecture, Section
from marketplace.services.course_content import (
    CourseContentReconciler,
    SubmittedLecture,
    SubmittedSection,
    parse_video_field,
)
from marketplace.tests.utils import (
    TEST_PUBLIC_URL,
    add_section,
    create_course,
    create_instructor,
    memory_storage,
)


def video(name="lecture.mp4"):
    return SimpleUploadedFile(name, b"\x00\x00\x00\x18ftypmp42", content_type="video/mp4")


def outline_of(course):
    """Current outline as submitted sections, ids included."""
    return [
        SubmittedSection(
            name=section.name,
            section_id=section.pk,
            lectures=[
                SubmittedLecture(
                    name=lecture.name, duration=lecture.duration, lecture_id=lecture.pk
                )
                for lecture in section.lectures.order_by("position")
            ],
        )
        for section in course.sections.order_by("position")
    ]


class ParseVideoFieldTests(TestCase):
    def test_valid_field(self):
        self.assertEqual(parse_video_field("videos[5][12]"), ("5", "12"))

    def test_other_fields_are_ignored(self):
        self.assertIsNone(parse_video_field("thumbnailUrl"))
        self.assertIsNone(parse_video_field("videos[5]"))
        self.assertIsNone(parse_video_field("videos[5][1][2]"))


class ReconcileOutlineTests(TestCase):
    def setUp(self):
        self.instructor = create_instructor()
        self.course = create_course(self.instructor)
        self.kept = add_section(self.course, "Intro", 0, ["Welcome"])
        self.dropped = add_section(self.course, "Old material", 1, ["Outdated", "Obsolete"])
        self.storage = memory_storage()
        self.reconciler = CourseContentReconciler(storage=self.storage)

    def test_rename_create_and_delete(self):
        welcome = self.kept.lectures.get()
        sections = [
            SubmittedSection(
                name="Introduction",
                section_id=self.kept.pk,
                lectures=[
                    SubmittedLecture("Welcome", "00:10:00", lecture_id=welcome.pk),
                    SubmittedLecture("Course tour", "00:04:00"),
                ],
            ),
            SubmittedSection(name="Irrigation", lectures=[SubmittedLecture("Drip lines", "00:12:00")]),
        ]

        result = self.reconciler.reconcile(self.course, sections)

        self.assertFalse(Section.objects.filter(pk=self.dropped.pk).exists())
        self.assertFalse(Lecture.objects.filter(name__in=["Outdated", "Obsolete"]).exists())
        self.kept.refresh_from_db()
        self.assertEqual(self.kept.name, "Introduction")

        self.assertEqual(result.sections_created, 1)
        self.assertEqual(result.sections_updated, 1)
        self.assertEqual(result.sections_deleted, 1)
        self.assertEqual(result.lectures_created, 2)
        self.assertEqual(result.lectures_deleted, 2)
        self.assertEqual(result.lectures_updated, 0)

        new_section = Section.objects.get(course=self.course, name="Irrigation")
        self.assertEqual(new_section.position, 1)
        self.assertEqual(
            list(self.kept.lectures.order_by("position").values_list("name", flat=True)),
            ["Welcome", "Course tour"],
        )

    def test_same_outline_twice_changes_nothing(self):
        sections = outline_of(self.course)
        sections[0].name = "Introduction"

        first = self.reconciler.reconcile(self.course, sections)
        second = self.reconciler.reconcile(self.course, outline_of(self.course))

        self.assertEqual(first.row_changes, 1)
        self.assertEqual(second.row_changes, 0)
        self.assertFalse(second.course_updated)

    def test_reorder_updates_positions(self):
        sections = list(reversed(outline_of(self.course)))

        result = self.reconciler.reconcile(self.course, sections)

        self.assertEqual(result.sections_updated, 2)
        self.kept.refresh_from_db()
        self.dropped.refresh_from_db()
        self.assertEqual((self.dropped.position, self.kept.position), (0, 1))

    def test_lecture_moves_to_other_section(self):
        outdated = self.dropped.lectures.get(name="Outdated")
        sections = outline_of(self.course)[:1]
        sections[0].lectures.append(
            SubmittedLecture("Outdated", "00:10:00", lecture_id=outdated.pk)
        )

        self.reconciler.reconcile(self.course, sections)

        outdated.refresh_from_db()
        self.assertEqual(outdated.section_id, self.kept.pk)
        self.assertEqual(outdated.position, 1)
        self.assertFalse(Section.objects.filter(pk=self.dropped.pk).exists())
        self.assertFalse(Lecture.objects.filter(name="Obsolete").exists())

    def test_every_lecture_belongs_to_a_section_of_the_course(self):
        sections = [
            SubmittedSection("A", lectures=[SubmittedLecture("a1"), SubmittedLecture("a2")]),
            SubmittedSection("B", lectures=[SubmittedLecture("b1")]),
        ]

        self.reconciler.reconcile(self.course, sections)

        lectures = Lecture.objects.filter(section__course=self.course)
        self.assertEqual(lectures.count(), 3)
        self.assertFalse(Lecture.objects.exclude(section__course=self.course).exists())
        self.assertEqual(
            set(lectures.values_list("instructor_id", flat=True)), {self.instructor.pk}
        )

    def test_foreign_section_id_is_rejected(self):
        other_course = create_course(self.instructor, name="Other")
        foreign = add_section(other_course, "Foreign", 0)
        sections = outline_of(self.course) + [SubmittedSection("Foreign", section_id=foreign.pk)]

        with self.assertRaises(ValidationException):
            self.reconciler.reconcile(self.course, sections)

        self.assertEqual(self.course.sections.count(), 2)

    def test_duplicated_lecture_id_is_rejected(self):
        welcome = self.kept.lectures.get()
        sections = outline_of(self.course)
        sections[1].lectures.append(SubmittedLecture("Welcome", lecture_id=welcome.pk))

        with self.assertRaises(ValidationException):
            self.reconciler.reconcile(self.course, sections)

    def test_failure_rolls_back_everything(self):
        sections = outline_of(self.course)[:1]
        sections[0].name = "Renamed"
        sections[0].lectures.append(SubmittedLecture("New lecture"))

        with patch.object(
            CourseContentReconciler, "_create_lectures", side_effect=DatabaseError("boom")
        ):
            with self.assertRaises(DatabaseError):
                self.reconciler.reconcile(self.course, sections)

        self.kept.refresh_from_db()
        self.assertEqual(self.kept.name, "Intro")
        self.assertTrue(Section.objects.filter(pk=self.dropped.pk).exists())
        self.assertEqual(Lecture.objects.filter(section__course=self.course).count(), 3)

    def test_course_fields_are_updated_only_when_changed(self):
        result = self.reconciler.reconcile(
            self.course, None, fields={"price": Decimal("49.99"), "name": "Soil Basics"}
        )
        self.assertFalse(result.course_updated)

        result = self.reconciler.reconcile(self.course, None, fields={"price": Decimal("59.00")})
        self.assertTrue(result.course_updated)
        self.assertEqual(Course.objects.get(pk=self.course.pk).price, Decimal("59.00"))

    def test_unknown_course_field_is_rejected(self):
        with self.assertRaises(ValidationException):
            self.reconciler.reconcile(self.course, None, fields={"instructor_id": 99})


class ReconcileMediaTests(TestCase):
    def setUp(self):
        self.instructor = create_instructor()
        self.course = create_course(self.instructor)
        self.section = add_section(self.course, "Intro", 0, ["Welcome"])
        self.welcome = self.section.lectures.get()
        self.storage = memory_storage()
        self.reconciler = CourseContentReconciler(storage=self.storage)

    def test_video_of_existing_lecture(self):
        field = f"videos[{self.section.pk}][{self.welcome.pk}]"

        result = self.reconciler.reconcile(
            self.course, outline_of(self.course), files={field: video()}
        )

        self.welcome.refresh_from_db()
        key = f"courses/{self.course.pk}/section-{self.section.pk}/lecture-{self.welcome.pk}.mp4"
        self.assertEqual(self.welcome.video_url, TEST_PUBLIC_URL + key)
        self.assertEqual(result.videos_uploaded, 1)
        self.storage.client.put_object.assert_called_once()
        self.assertEqual(self.storage.client.put_object.call_args.kwargs["Key"], key)

    def test_video_of_new_lecture_in_new_section(self):
        sections = outline_of(self.course) + [
            SubmittedSection("Irrigation", lectures=[
                SubmittedLecture("Drip lines"),
                SubmittedLecture("Sprinklers"),
            ])
        ]

        self.reconciler.reconcile(self.course, sections, files={"videos[0][1]": video()})

        sprinklers = Lecture.objects.get(name="Sprinklers")
        drip = Lecture.objects.get(name="Drip lines")
        self.assertTrue(sprinklers.video_url.startswith(TEST_PUBLIC_URL))
        self.assertFalse(drip.video_url.startswith(TEST_PUBLIC_URL))

    def test_video_of_new_lecture_in_existing_section(self):
        sections = outline_of(self.course)
        sections[0].lectures.append(SubmittedLecture("Course tour"))
        # lecture ids start at 1, index 0 cannot collide with an existing lecture
        field = f"videos[{self.section.pk}][0]"

        self.reconciler.reconcile(self.course, sections, files={field: video()})

        tour = Lecture.objects.get(name="Course tour")
        self.assertTrue(tour.video_url.startswith(TEST_PUBLIC_URL))

    def test_unmatched_video_is_ignored(self):
        result = self.reconciler.reconcile(
            self.course, outline_of(self.course), files={"videos[404][404]": video()}
        )
        self.assertEqual(result.files_ignored, 1)
        self.storage.client.put_object.assert_not_called()

    def test_deleted_lecture_video_is_removed(self):
        self.welcome.video_url = f"{TEST_PUBLIC_URL}courses/{self.course.pk}/welcome.mp4"
        self.welcome.save()
        sections = [SubmittedSection("Intro", section_id=self.section.pk, lectures=[])]

        with self.captureOnCommitCallbacks(execute=True):
            result = self.reconciler.reconcile(self.course, sections)

        self.storage.client.delete_object.assert_called_once_with(
            Bucket="agteach-test", Key=f"courses/{self.course.pk}/welcome.mp4"
        )
        self.assertEqual(result.videos_deleted, 1)
        self.assertEqual(result.lectures_deleted, 1)

    def test_failed_reconcile_keeps_videos_of_restored_lectures(self):
        self.welcome.video_url = f"{TEST_PUBLIC_URL}courses/{self.course.pk}/welcome.mp4"
        self.welcome.save()
        self.storage.client.put_object.side_effect = ClientError(
            {"Error": {"Code": "ServiceUnavailable", "Message": "down"}}, "PutObject"
        )
        sections = [SubmittedSection("Intro", section_id=self.section.pk, lectures=[])]
        thumbnail = SimpleUploadedFile("thumb.jpeg", b"\xff\xd8\xff", content_type="image/jpeg")

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(ExternalServiceException):
                self.reconciler.reconcile(self.course, sections, thumbnail=thumbnail)

        self.assertEqual(callbacks, [])
        self.storage.client.delete_object.assert_not_called()
        self.welcome.refresh_from_db()
        self.assertTrue(self.welcome.video_url.endswith("welcome.mp4"))

    def test_colliding_coordinates_are_rejected(self):
        # Enough new lectures that one new index equals the id of the existing lecture
        sections = outline_of(self.course)
        sections[0].lectures.extend(
            SubmittedLecture(f"Extra {index}") for index in range(self.welcome.pk + 1)
        )
        files = {
            f"videos[{self.section.pk}][0]": video(),
            f"videos[{self.section.pk}][{self.welcome.pk}]": video(),
        }

        with self.assertRaises(ValidationException):
            self.reconciler.reconcile(self.course, sections, files=files)

        self.assertEqual(self.storage.client.put_object.call_count, 0)
        self.assertEqual(Lecture.objects.filter(section=self.section).count(), 1)

    def test_upload_failure_rolls_back_outline(self):
        self.storage.client.put_object.side_effect = ClientError(
            {"Error": {"Code": "ServiceUnavailable", "Message": "down"}}, "PutObject"
        )
        sections = outline_of(self.course)
        sections[0].name = "Renamed"
        field = f"videos[{self.section.pk}][{self.welcome.pk}]"

        with self.assertRaises(ExternalServiceException):
            self.reconciler.reconcile(self.course, sections, files={field: video()})

        self.section.refresh_from_db()
        self.assertEqual(self.section.name, "Intro")

    def test_thumbnail_upload(self):
        thumbnail = SimpleUploadedFile("thumb.jpeg", b"\xff\xd8\xff", content_type="image/jpeg")

        result = self.reconciler.reconcile(self.course, None, thumbnail=thumbnail)

        self.course.refresh_from_db()
        self.assertTrue(result.thumbnail_uploaded)
        self.assertEqual(
            self.course.thumbnail_url, f"{TEST_PUBLIC_URL}courses/{self.course.pk}/thumbnail.jpeg"
        )


class CreateCourseTests(TestCase):
    def setUp(self):
        self.instructor = create_instructor()
        self.reconciler = CourseContentReconciler(storage=memory_storage())

    def test_create_with_outline_and_preview_video(self):
        sections = [
            SubmittedSection("Intro", lectures=[SubmittedLecture("Welcome", "00:03:00")]),
            SubmittedSection("Soil", lectures=[SubmittedLecture("Clay"), SubmittedLecture("Sand")]),
        ]

        course, result = self.reconciler.create_course(
            self.instructor,
            {"name": "Farming 101", "price": Decimal("20.00")},
            sections,
            files={"videos[0][0]": video()},
        )

        self.assertEqual(result.sections_created, 2)
        self.assertEqual(result.lectures_created, 3)
        welcome = Lecture.objects.get(name="Welcome")
        self.assertEqual(course.preview_video_url, welcome.video_url)
        self.assertTrue(welcome.video_url.startswith(TEST_PUBLIC_URL))

    def test_existing_ids_are_rejected(self):
        with self.assertRaises(ValidationException):
            self.reconciler.create_course(
                self.instructor,
                {"name": "Farming 101", "price": Decimal("20.00")},
                [SubmittedSection("Intro", section_id=1)],
            )
        self.assertFalse(Course.objects.exists())
