"""
Marketplace URL Configuration

Instructor endpoints of the marketplace, mounted below ``/api/``:

- course/uploadCourse
- course/updateCourse/<id>
- course/deleteOneCourse/<id>
- purchased/updateDeliver

Checkout and payment endpoints live in ``core.stripe_integration.urls``.

Author: AgTeach Development Team
Version: 1.0.0
"""

from typing import List

from django.urls import URLPattern, path

from .courses import views as course_views
from .sales import views as sales_views

app_name = "marketplace"

# --- Course management ---

course_urlpatterns: List[URLPattern] = [
    path("course/uploadCourse", course_views.UploadCourseView.as_view(), name="upload-course"),
    path("course/updateCourse/<int:pk>", course_views.UpdateCourseView.as_view(), name="update-course"),
    path("course/deleteOneCourse/<int:pk>", course_views.DeleteCourseView.as_view(), name="delete-course"),
]

# --- Order delivery ---

sales_urlpatterns: List[URLPattern] = [
    path("purchased/updateDeliver", sales_views.UpdateDeliverView.as_view(), name="update-deliver"),
]

urlpatterns: List[URLPattern] = course_urlpatterns + sales_urlpatterns
