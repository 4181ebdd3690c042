import django.db.models.deletion
import marketplace.courses.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Instructor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                (
                    "user",
                    models.OneToOneField(
                        help_text="Associated user account",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="instructor",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="User",
                    ),
                ),
            ],
            options={
                "verbose_name": "Instructor",
                "verbose_name_plural": "Instructors",
                "db_table": "marketplace_instructor",
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                (
                    "user",
                    models.OneToOneField(
                        help_text="Associated user account",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="customer",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="User",
                    ),
                ),
            ],
            options={
                "verbose_name": "Customer",
                "verbose_name_plural": "Customers",
                "db_table": "marketplace_customer",
            },
        ),
        migrations.CreateModel(
            name="ProductCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "name",
                    models.CharField(
                        help_text="Unique name for this product category",
                        max_length=100,
                        unique=True,
                        verbose_name="Category Name",
                    ),
                ),
            ],
            options={
                "verbose_name": "Product Category",
                "verbose_name_plural": "Product Categories",
                "db_table": "marketplace_product_category",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, verbose_name="Product Name")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("price", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="Unit Price")),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Decremented when a paid checkout is fulfilled",
                        verbose_name="Quantity in Stock",
                    ),
                ),
                ("image_url", models.TextField(blank=True, verbose_name="Image URL")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="products",
                        to="marketplace.productcategory",
                        verbose_name="Category",
                    ),
                ),
                (
                    "instructor",
                    models.ForeignKey(
                        help_text="Instructor selling this product",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="products",
                        to="marketplace.instructor",
                        verbose_name="Instructor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "db_table": "marketplace_product",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.TextField(verbose_name="Course Name")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("course_objective", models.TextField(blank=True, verbose_name="Course Objective")),
                ("price", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="Price")),
                ("duration", models.CharField(default="00:00:00", max_length=20, verbose_name="Total Duration")),
                ("number_of_video", models.PositiveIntegerField(default=0, verbose_name="Number of Videos")),
                (
                    "preview_video_url",
                    models.TextField(
                        default=marketplace.courses.models.default_video_url,
                        verbose_name="Preview Video URL",
                    ),
                ),
                (
                    "thumbnail_url",
                    models.TextField(
                        default=marketplace.courses.models.default_thumbnail_url,
                        verbose_name="Thumbnail URL",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "instructor",
                    models.ForeignKey(
                        help_text="Instructor who owns and edits this course",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="courses",
                        to="marketplace.instructor",
                        verbose_name="Instructor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Course",
                "verbose_name_plural": "Courses",
                "db_table": "marketplace_course",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Section",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.TextField(verbose_name="Section Name")),
                (
                    "position",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Order of the section within the course (0 = first)",
                        verbose_name="Position",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sections",
                        to="marketplace.course",
                        verbose_name="Course",
                    ),
                ),
                (
                    "instructor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sections",
                        to="marketplace.instructor",
                        verbose_name="Instructor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Section",
                "verbose_name_plural": "Sections",
                "db_table": "marketplace_section",
                "ordering": ["course", "position", "id"],
            },
        ),
        migrations.CreateModel(
            name="Lecture",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, verbose_name="Lecture Name")),
                (
                    "video_url",
                    models.TextField(
                        default=marketplace.courses.models.default_video_url,
                        verbose_name="Video URL",
                    ),
                ),
                ("duration", models.CharField(default="00:00:00", max_length=20, verbose_name="Duration")),
                (
                    "position",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Order of the lecture within the section (0 = first)",
                        verbose_name="Position",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "instructor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lectures",
                        to="marketplace.instructor",
                        verbose_name="Instructor",
                    ),
                ),
                (
                    "section",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lectures",
                        to="marketplace.section",
                        verbose_name="Section",
                    ),
                ),
            ],
            options={
                "verbose_name": "Lecture",
                "verbose_name_plural": "Lectures",
                "db_table": "marketplace_lecture",
                "ordering": ["section", "position", "id"],
            },
        ),
        migrations.CreateModel(
            name="Enroll",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Enrolled At")),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="enrollments",
                        to="marketplace.course",
                        verbose_name="Course",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="enrollments",
                        to="marketplace.customer",
                        verbose_name="Customer",
                    ),
                ),
            ],
            options={
                "verbose_name": "Enrollment",
                "verbose_name_plural": "Enrollments",
                "db_table": "marketplace_enroll",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("course", "customer"), name="unique_enrollment_per_customer"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="CourseSaleHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("price", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="Sale Price")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Sold At")),
                (
                    "course",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sale_histories",
                        to="marketplace.course",
                        verbose_name="Course",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="course_sale_histories",
                        to="marketplace.customer",
                        verbose_name="Customer",
                    ),
                ),
                (
                    "instructor",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="course_sale_histories",
                        to="marketplace.instructor",
                        verbose_name="Instructor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Course Sale History",
                "verbose_name_plural": "Course Sale Histories",
                "db_table": "marketplace_course_sale_history",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Purchased",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "total",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Sum of all line item totals",
                        max_digits=12,
                        verbose_name="Total",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Purchased At")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="purchases",
                        to="marketplace.customer",
                        verbose_name="Customer",
                    ),
                ),
            ],
            options={
                "verbose_name": "Purchase",
                "verbose_name_plural": "Purchases",
                "db_table": "marketplace_purchased",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PurchasedDetail",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField(verbose_name="Quantity")),
                ("price", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="Unit Price")),
                ("total", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="Line Total")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                (
                    "product",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="purchased_details",
                        to="marketplace.product",
                        verbose_name="Product",
                    ),
                ),
                (
                    "purchased",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="details",
                        to="marketplace.purchased",
                        verbose_name="Purchase",
                    ),
                ),
            ],
            options={
                "verbose_name": "Purchase Detail",
                "verbose_name_plural": "Purchase Details",
                "db_table": "marketplace_purchased_detail",
            },
        ),
        migrations.CreateModel(
            name="ProductSaleHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_delivered", models.BooleanField(default=False, verbose_name="Delivered")),
                ("delivered_at", models.DateTimeField(blank=True, null=True, verbose_name="Delivered At")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="product_sale_histories",
                        to="marketplace.customer",
                        verbose_name="Customer",
                    ),
                ),
                (
                    "instructor",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="product_sale_histories",
                        to="marketplace.instructor",
                        verbose_name="Instructor",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sale_histories",
                        to="marketplace.product",
                        verbose_name="Product",
                    ),
                ),
                (
                    "purchased",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sale_histories",
                        to="marketplace.purchased",
                        verbose_name="Purchase",
                    ),
                ),
                (
                    "purchased_detail",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sale_history",
                        to="marketplace.purchaseddetail",
                        verbose_name="Purchase Detail",
                    ),
                ),
            ],
            options={
                "verbose_name": "Product Sale History",
                "verbose_name_plural": "Product Sale Histories",
                "db_table": "marketplace_product_sale_history",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ProcessedWebhookEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_id", models.CharField(max_length=255, unique=True, verbose_name="Gateway Event ID")),
                ("event_type", models.CharField(max_length=100, verbose_name="Event Type")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Processed At")),
            ],
            options={
                "verbose_name": "Processed Webhook Event",
                "verbose_name_plural": "Processed Webhook Events",
                "db_table": "marketplace_processed_webhook_event",
            },
        ),
    ]
