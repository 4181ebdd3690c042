"""
Marketplace Django Admin Configuration

Admin interface for every marketplace model, themed by django-jazzmin.

Sections:
- Members: Instructor and customer profiles
- Catalog: Products and categories
- Courses: Courses with inline sections, sections with inline lectures
- Sales: Enrollments, purchases and sale histories (read-mostly audit data)

Author: AgTeach Development Team
Version: 1.0.0
"""

from django.contrib import admin
from django.db.models import Count, QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

from .models import (
    Course,
    CourseSaleHistory,
    Customer,
    Enroll,
    Instructor,
    Lecture,
    ProcessedWebhookEvent,
    Product,
    ProductCategory,
    ProductSaleHistory,
    Purchased,
    PurchasedDetail,
    Section,
)

# --- Members ---


@admin.register(Instructor)
class InstructorAdmin(admin.ModelAdmin):
    list_display = ("user", "created_at")
    search_fields = ("user__username", "user__email")
    autocomplete_fields = ("user",)
    readonly_fields = ("created_at",)


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("user", "created_at")
    search_fields = ("user__username", "user__email")
    autocomplete_fields = ("user",)
    readonly_fields = ("created_at",)


# --- Catalog ---


@admin.register(ProductCategory)
class ProductCategoryAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Administration interface for products and their stock."""

    list_display = ("name", "instructor", "category", "price", "quantity")
    list_filter = ("category",)
    search_fields = ("name", "description", "instructor__user__username")
    autocomplete_fields = ("instructor", "category")
    readonly_fields = ("created_at", "updated_at")

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return super().get_queryset(request).select_related("instructor__user", "category")


# --- Courses ---


class SectionInline(admin.TabularInline):
    """Inline admin for the sections of a course."""

    model = Section
    extra = 0
    fields = ("name", "position", "instructor")
    ordering = ("position",)


class LectureInline(admin.TabularInline):
    """Inline admin for the lectures of a section."""

    model = Lecture
    extra = 0
    fields = ("name", "duration", "position", "video_url", "instructor")
    ordering = ("position",)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    """
    Administration interface for courses.

    Sections are edited inline; lectures are edited on the section page.
    """

    list_display = ("name", "instructor", "price", "number_of_video", "get_section_count")
    search_fields = ("name", "description", "instructor__user__username")
    autocomplete_fields = ("instructor",)
    readonly_fields = ("created_at", "updated_at")
    inlines = [SectionInline]

    fieldsets = (
        (_("Basic Information"), {"fields": ("name", "description", "course_objective", "instructor")}),
        (_("Pricing"), {"fields": ("price",)}),
        (
            _("Media"),
            {"fields": ("preview_video_url", "thumbnail_url", "duration", "number_of_video")},
        ),
        (_("Timestamps"), {"fields": ("created_at", "updated_at")}),
    )

    @admin.display(description=_("Sections"), ordering="section_total")
    def get_section_count(self, instance: Course) -> int:
        return instance.section_total

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        """Annotate the section count to avoid one query per row."""
        return (
            super()
            .get_queryset(request)
            .select_related("instructor__user")
            .annotate(section_total=Count("sections"))
        )


@admin.register(Section)
class SectionAdmin(admin.ModelAdmin):
    list_display = ("name", "course", "position")
    search_fields = ("name", "course__name")
    autocomplete_fields = ("course", "instructor")
    ordering = ("course", "position")
    inlines = [LectureInline]


# --- Sales ---


class PurchasedDetailInline(admin.TabularInline):
    model = PurchasedDetail
    extra = 0
    fields = ("product", "quantity", "price", "total")
    readonly_fields = fields
    can_delete = False


@admin.register(Purchased)
class PurchasedAdmin(admin.ModelAdmin):
    """Administration interface for product purchases."""

    list_display = ("id", "customer", "total", "created_at")
    search_fields = ("customer__user__username", "customer__user__email")
    readonly_fields = ("customer", "total", "created_at")
    inlines = [PurchasedDetailInline]


@admin.register(ProductSaleHistory)
class ProductSaleHistoryAdmin(admin.ModelAdmin):
    list_display = ("purchased", "product", "customer", "instructor", "is_delivered", "delivered_at")
    list_filter = ("is_delivered",)
    search_fields = ("product__name", "customer__user__username")
    readonly_fields = (
        "product",
        "customer",
        "purchased_detail",
        "instructor",
        "purchased",
        "created_at",
    )


@admin.register(CourseSaleHistory)
class CourseSaleHistoryAdmin(admin.ModelAdmin):
    list_display = ("course", "customer", "instructor", "price", "created_at")
    search_fields = ("course__name", "customer__user__username")
    readonly_fields = ("course", "customer", "instructor", "price", "created_at")


@admin.register(Enroll)
class EnrollAdmin(admin.ModelAdmin):
    list_display = ("course", "customer", "created_at")
    search_fields = ("course__name", "customer__user__username")
    autocomplete_fields = ("course", "customer")
    readonly_fields = ("created_at",)


@admin.register(ProcessedWebhookEvent)
class ProcessedWebhookEventAdmin(admin.ModelAdmin):
    list_display = ("event_id", "event_type", "created_at")
    search_fields = ("event_id",)
    readonly_fields = ("event_id", "event_type", "created_at")
