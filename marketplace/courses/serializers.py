import json

from rest_framework import serializers

from core.exceptions import ValidationException

from ..services.course_content import SubmittedLecture, SubmittedSection
from .models import Course, Lecture, Section


class LectureSerializer(serializers.ModelSerializer):
    class Meta:
        model = Lecture
        fields = ["id", "name", "duration", "video_url", "position"]


class SectionSerializer(serializers.ModelSerializer):
    lectures = LectureSerializer(many=True, read_only=True)

    class Meta:
        model = Section
        fields = ["id", "name", "position", "lectures"]


class CourseSerializer(serializers.ModelSerializer):
    sections = SectionSerializer(many=True, read_only=True)

    class Meta:
        model = Course
        fields = [
            "id",
            "instructor",
            "name",
            "description",
            "course_objective",
            "price",
            "duration",
            "number_of_video",
            "preview_video_url",
            "thumbnail_url",
            "sections",
            "created_at",
            "updated_at",
        ]


class CourseFieldsSerializer(serializers.Serializer):
    """Scalar course fields as sent by the course editor (camelCase form fields)."""

    courseName = serializers.CharField(source="name", required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    courseObjective = serializers.CharField(
        source="course_objective", required=False, allow_blank=True
    )
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False
    )
    numberOfVideo = serializers.IntegerField(
        source="number_of_video", min_value=0, required=False
    )
    totalDuration = serializers.CharField(source="duration", required=False)


class SubmittedLectureSerializer(serializers.Serializer):
    lectureId = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    lectureName = serializers.CharField(max_length=255)
    lectureDuration = serializers.CharField(required=False, default="00:00:00")


class SubmittedSectionSerializer(serializers.Serializer):
    sectionId = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    sectionName = serializers.CharField()
    allLecture = SubmittedLectureSerializer(many=True, required=False, default=list)


def parse_outline(raw):
    """
    Parse the ``allSection`` payload into submitted sections.

    Accepts the JSON-encoded string sent with multipart forms or an already
    decoded list. Returns None when no outline was sent.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationException("allSection must be valid JSON.")

    serializer = SubmittedSectionSerializer(data=raw, many=True)
    if not serializer.is_valid():
        raise ValidationException(
            "Invalid course outline.", validation_errors={"allSection": serializer.errors}
        )

    return [
        SubmittedSection(
            name=section["sectionName"],
            section_id=section.get("sectionId"),
            lectures=[
                SubmittedLecture(
                    name=lecture["lectureName"],
                    duration=lecture["lectureDuration"],
                    lecture_id=lecture.get("lectureId"),
                )
                for lecture in section["allLecture"]
            ],
        )
        for section in serializer.validated_data
    ]


def parse_course_fields(data, required=()):
    """Validated scalar course fields keyed by model field name."""
    serializer = CourseFieldsSerializer(data=data)
    if not serializer.is_valid():
        raise ValidationException("Invalid course data.", validation_errors=serializer.errors)
    fields = dict(serializer.validated_data)
    missing = [name for name in required if name not in fields]
    if missing:
        raise ValidationException(f"Missing required course fields: {', '.join(missing)}")
    return fields
