"""
Shared helpers for the marketplace test-suite.
"""

from decimal import Decimal
from unittest.mock import MagicMock

from django.contrib.auth.models import User

from marketplace.models import Course, Customer, Instructor, Lecture, Product, Section
from marketplace.services.cloud_storage import ObjectStorageService

TEST_PUBLIC_URL = "https://cdn.test/"


def create_instructor(username="farmer", email="farmer@test.com"):
    user = User.objects.create_user(username=username, password="Musterpassword", email=email)
    return Instructor.objects.create(user=user)


def create_customer(username="student", email="student@test.com"):
    user = User.objects.create_user(username=username, password="Musterpassword", email=email)
    return Customer.objects.create(user=user)


def create_course(instructor, name="Soil Basics", price="49.99"):
    return Course.objects.create(
        instructor=instructor,
        name=name,
        description="Everything about soil",
        course_objective="Know your soil",
        price=Decimal(price),
    )


def add_section(course, name, position, lectures=()):
    section = Section.objects.create(
        course=course, instructor=course.instructor, name=name, position=position
    )
    for index, lecture_name in enumerate(lectures):
        Lecture.objects.create(
            section=section,
            instructor=course.instructor,
            name=lecture_name,
            duration="00:10:00",
            position=index,
        )
    return section


def create_product(instructor, name="Seed Pack", price="10.00", quantity=10):
    return Product.objects.create(
        instructor=instructor, name=name, price=Decimal(price), quantity=quantity
    )


def memory_storage():
    """Object storage backed by a MagicMock client."""
    return ObjectStorageService(
        client=MagicMock(), bucket_name="agteach-test", public_url=TEST_PUBLIC_URL
    )
