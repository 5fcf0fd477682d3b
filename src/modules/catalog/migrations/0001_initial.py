import django.core.validators
import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Book",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "deleted_at",
                    models.DateTimeField(blank=True, db_index=True, default=None, null=True),
                ),
                ("name", models.CharField(max_length=255, unique=True)),
                ("author", models.CharField(max_length=100)),
                ("genre", models.CharField(max_length=100)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "pages",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("publication_date", models.DateField(blank=True, null=True)),
                (
                    "language",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("ENGLISH", "English"),
                            ("UKRAINIAN", "Ukrainian"),
                            ("SPANISH", "Spanish"),
                            ("FRENCH", "French"),
                            ("GERMAN", "German"),
                            ("OTHER", "Other"),
                        ],
                        default="",
                        max_length=20,
                    ),
                ),
                (
                    "target_age_group",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("CHILD", "Child"),
                            ("TEEN", "Teen"),
                            ("ADULT", "Adult"),
                            ("OTHER", "Other"),
                        ],
                        default="",
                        max_length=20,
                    ),
                ),
                ("description", models.TextField(blank=True, default="")),
                ("characteristics", models.TextField(blank=True, default="")),
            ],
            options={
                "db_table": "books",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["author"], name="books_author_idx"),
                    models.Index(fields=["genre"], name="books_genre_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(price__gt=0), name="books_price_positive"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(pages__gte=1), name="books_pages_positive"
                    ),
                ],
            },
        ),
    ]
