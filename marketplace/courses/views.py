"""
Course Management Views

Instructor endpoints that write a course and its outline.

Endpoints:
- POST   /api/course/uploadCourse            Create a course with its outline
- PATCH  /api/course/updateCourse/<id>       Reconcile the outline of a course
- DELETE /api/course/deleteOneCourse/<id>    Delete a course and its media

Request format (multipart/form-data):
- courseName, description, price, courseObjective, numberOfVideo, totalDuration
- allSection: JSON array of
  {sectionId?, sectionName, allLecture: [{lectureId?, lectureName, lectureDuration}]}
- videos[<sectionKey>][<lectureKey>]: lecture video files
- thumbnailUrl: course thumbnail file

Author: AgTeach Development Team
Version: 1.0.0
"""

import logging

from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import ValidationException

from ..permissions import IsInstructor, get_instructor, get_owned_object
from ..services.course_content import CourseContentReconciler
from .models import Course
from .serializers import CourseSerializer, parse_course_fields, parse_outline

logger = logging.getLogger(__name__)


def _course_payload(course: Course):
    course = Course.objects.prefetch_related("sections__lectures").get(pk=course.pk)
    return CourseSerializer(course).data


class CourseWriteView(APIView):
    """Base class for the instructor course endpoints."""

    permission_classes = [IsAuthenticated, IsInstructor]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get_reconciler(self) -> CourseContentReconciler:
        return CourseContentReconciler()

    def get_course(self, request, pk) -> Course:
        return get_owned_object(Course.objects.all(), pk, get_instructor(request.user), "course")


class UploadCourseView(CourseWriteView):
    def post(self, request):
        fields = parse_course_fields(request.data, required=("name", "price"))
        sections = parse_outline(request.data.get("allSection"))
        if sections is None:
            raise ValidationException("allSection is required.")

        course, result = self.get_reconciler().create_course(
            get_instructor(request.user),
            fields,
            sections,
            files=request.FILES,
            thumbnail=request.FILES.get("thumbnailUrl"),
        )
        return Response(
            {
                "status": "success",
                "message": "Course and related data created successfully",
                "data": _course_payload(course),
                "summary": result.to_dict(),
            },
            status=status.HTTP_201_CREATED,
        )


class UpdateCourseView(CourseWriteView):
    def patch(self, request, pk):
        course = self.get_course(request, pk)
        fields = parse_course_fields(request.data)
        sections = parse_outline(request.data.get("allSection"))

        result = self.get_reconciler().reconcile(
            course,
            sections,
            fields=fields,
            files=request.FILES,
            thumbnail=request.FILES.get("thumbnailUrl"),
        )
        return Response(
            {
                "status": "success",
                "message": _course_payload(course),
                "data": result.to_dict(),
            },
            status=status.HTTP_200_OK,
        )


class DeleteCourseView(CourseWriteView):
    def delete(self, request, pk):
        course = self.get_course(request, pk)
        course_id = course.pk
        course.delete()
        logger.info("Deleted course %s", course_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
