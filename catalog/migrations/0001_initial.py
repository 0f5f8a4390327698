from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Fragrance",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("brand", models.CharField(blank=True, default="", max_length=255)),
                ("brand_slug", models.SlugField(default="unknown", editable=False, max_length=255)),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(blank=True, max_length=255, null=True, unique=True)),
                ("image_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("image_url_transparent", models.URLField(blank=True, max_length=1000, null=True)),
                ("fragrantica_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("accords", models.JSONField(blank=True, default=list)),
            ],
            options={
                "db_table": "fragrances",
                "indexes": [
                    models.Index(fields=["brand_slug"], name="idx_frag_brand_slug"),
                    models.Index(fields=["name"], name="idx_frag_name"),
                    models.Index(fields=["fragrantica_url"], name="idx_frag_fragrantica"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Profile",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("username", models.CharField(max_length=60, unique=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("is_admin", models.BooleanField(default=False)),
                ("user", models.OneToOneField(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="profile", to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "db_table": "profiles",
                "indexes": [models.Index(fields=["email"], name="idx_profiles_email")],
            },
        ),
        migrations.CreateModel(
            name="Decant",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("label", models.CharField(max_length=120)),
                ("price_cents", models.PositiveIntegerField()),
                ("quantity", models.IntegerField(blank=True, null=True)),
                ("in_stock", models.BooleanField(default=True)),
                ("fragrance", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="decants", to="catalog.fragrance",
                )),
            ],
            options={
                "db_table": "decants",
                "indexes": [
                    models.Index(fields=["fragrance"], name="idx_decant_fragrance"),
                    models.Index(fields=["in_stock"], name="idx_decant_in_stock"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 0), ("quantity__isnull", True), _connector="OR"),
                        name="ck_decant_qty_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserFragrance",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("position", models.IntegerField(default=0)),
                ("shelf_index", models.IntegerField(blank=True, null=True)),
                ("row_index", models.IntegerField(default=0)),
                ("column_key", models.CharField(
                    blank=True, choices=[("left", "left"), ("center", "center"), ("right", "right")],
                    default="", max_length=10,
                )),
                ("fragrance", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="shelf_links", to="catalog.fragrance",
                )),
                ("profile", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="shelf_links", to="catalog.profile",
                )),
            ],
            options={
                "db_table": "user_fragrances",
                "indexes": [models.Index(fields=["profile", "position"], name="idx_uf_profile_pos")],
                "constraints": [
                    models.UniqueConstraint(fields=("profile", "fragrance"), name="uq_uf_profile_fragrance"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BrandPosition",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("brand_key", models.SlugField(max_length=255)),
                ("x_pct", models.FloatField(default=50)),
                ("y_pct", models.FloatField(default=80)),
                ("is_public", models.BooleanField(default=False)),
                ("profile", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="brand_positions", to="catalog.profile",
                )),
            ],
            options={
                "db_table": "brand_positions",
                "constraints": [
                    models.UniqueConstraint(fields=("profile", "brand_key"), name="uq_bp_profile_brand"),
                ],
            },
        ),
    ]
