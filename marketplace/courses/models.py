"""
Marketplace Course Models

This module defines the course outline hierarchy sold on the marketplace:

- Course: Sellable course owned by an instructor
- Section: Ordered container of lectures inside a course
- Lecture: Single video lesson inside a section

Sections and lectures carry an explicit ``position`` equal to their index
in the outline last submitted by the instructor, so reordering is a plain
update and listings are deterministic.

Deleting a course cascades to its sections and lectures; the stored media
folder of the course is removed by the ``post_delete`` receiver in
``marketplace.signals``.

Author: AgTeach Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from ..accounts.models import Instructor


def default_video_url() -> str:
    """Placeholder video used until a real lecture video is uploaded."""
    return settings.PLACEHOLDER_VIDEO_URL


def default_thumbnail_url() -> str:
    """Placeholder image used until a course thumbnail is uploaded."""
    return settings.PLACEHOLDER_THUMBNAIL_URL


class Course(models.Model):
    """
    Sellable online course.

    Attributes:
        instructor: Owning instructor
        name: Course title
        description: Marketing description
        course_objective: What the customer will learn
        price: Price in the default currency
        duration: Total duration as ``HH:MM:SS``
        number_of_video: Number of lecture videos advertised
        preview_video_url: Public preview video
        thumbnail_url: Course card image
    """

    instructor = models.ForeignKey(
        Instructor,
        on_delete=models.CASCADE,
        related_name="courses",
        verbose_name=_("Instructor"),
        help_text=_("Instructor who owns and edits this course"),
    )

    name = models.TextField(verbose_name=_("Course Name"))

    description = models.TextField(blank=True, verbose_name=_("Description"))

    course_objective = models.TextField(blank=True, verbose_name=_("Course Objective"))

    price = models.DecimalField(max_digits=10, decimal_places=2, verbose_name=_("Price"))

    duration = models.CharField(
        max_length=20, default="00:00:00", verbose_name=_("Total Duration")
    )

    number_of_video = models.PositiveIntegerField(
        default=0, verbose_name=_("Number of Videos")
    )

    preview_video_url = models.TextField(
        default=default_video_url, verbose_name=_("Preview Video URL")
    )

    thumbnail_url = models.TextField(
        default=default_thumbnail_url, verbose_name=_("Thumbnail URL")
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Created At"))

    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("Updated At"))

    def __str__(self) -> str:
        return self.name

    class Meta:
        verbose_name = _("Course")
        verbose_name_plural = _("Courses")
        ordering = ["-created_at"]
        db_table = "marketplace_course"

    @property
    def section_count(self) -> int:
        """Number of sections currently persisted for this course."""
        return self.sections.count()

    @property
    def storage_prefix(self) -> str:
        """Object storage folder holding every media file of this course."""
        return f"courses/{self.pk}"


class Section(models.Model):
    """
    Ordered group of lectures inside a course.

    A section with zero lectures is valid and persists as an empty container.
    """

    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="sections",
        verbose_name=_("Course"),
    )

    instructor = models.ForeignKey(
        Instructor,
        on_delete=models.CASCADE,
        related_name="sections",
        verbose_name=_("Instructor"),
    )

    name = models.TextField(verbose_name=_("Section Name"))

    position = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Position"),
        help_text=_("Order of the section within the course (0 = first)"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Created At"))

    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("Updated At"))

    def __str__(self) -> str:
        return f"{self.course.name} - {self.name}"

    class Meta:
        verbose_name = _("Section")
        verbose_name_plural = _("Sections")
        ordering = ["course", "position", "id"]
        db_table = "marketplace_section"


class Lecture(models.Model):
    """Single video lesson inside a section."""

    section = models.ForeignKey(
        Section,
        on_delete=models.CASCADE,
        related_name="lectures",
        verbose_name=_("Section"),
    )

    instructor = models.ForeignKey(
        Instructor,
        on_delete=models.CASCADE,
        related_name="lectures",
        verbose_name=_("Instructor"),
    )

    name = models.CharField(max_length=255, verbose_name=_("Lecture Name"))

    video_url = models.TextField(default=default_video_url, verbose_name=_("Video URL"))

    duration = models.CharField(
        max_length=20, default="00:00:00", verbose_name=_("Duration")
    )

    position = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Position"),
        help_text=_("Order of the lecture within the section (0 = first)"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("Created At"))

    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("Updated At"))

    def __str__(self) -> str:
        return self.name

    class Meta:
        verbose_name = _("Lecture")
        verbose_name_plural = _("Lectures")
        ordering = ["section", "position", "id"]
        db_table = "marketplace_lecture"
