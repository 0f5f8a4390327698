from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="DiscountCode",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=60, unique=True)),
                ("type", models.CharField(
                    choices=[("percent", "percent"), ("fixed", "fixed"), ("free_shipping", "free shipping")],
                    default="percent", max_length=20,
                )),
                ("value", models.IntegerField(blank=True, null=True)),
                ("active", models.BooleanField(default=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("min_subtotal_cents", models.IntegerField(default=0)),
            ],
            options={
                "db_table": "discount_codes",
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False, null=True)),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("stripe_session_id", models.CharField(max_length=255, unique=True)),
                ("stripe_payment_intent", models.CharField(blank=True, max_length=255, null=True)),
                ("amount_total", models.IntegerField(blank=True, null=True)),
                ("currency", models.CharField(default="usd", max_length=10)),
                ("items", models.JSONField(blank=True, default=list)),
                ("status", models.CharField(default="pending", max_length=32)),
                ("discount_code", models.CharField(blank=True, max_length=60, null=True)),
                ("inventory_applied", models.BooleanField(default=False)),
                ("buyer_email", models.EmailField(blank=True, max_length=254, null=True)),
                ("buyer_name", models.CharField(blank=True, max_length=255, null=True)),
                ("buyer_phone", models.CharField(blank=True, max_length=50, null=True)),
                ("shipping_name", models.CharField(blank=True, max_length=255, null=True)),
                ("shipping_address1", models.CharField(blank=True, max_length=255, null=True)),
                ("shipping_address2", models.CharField(blank=True, max_length=255, null=True)),
                ("shipping_city", models.CharField(blank=True, max_length=120, null=True)),
                ("shipping_state", models.CharField(blank=True, max_length=120, null=True)),
                ("shipping_postal", models.CharField(blank=True, max_length=30, null=True)),
                ("shipping_country", models.CharField(blank=True, max_length=2, null=True)),
                ("fulfilled", models.BooleanField(default=False)),
                ("comment", models.TextField(blank=True, default="")),
                ("email_sent", models.BooleanField(default=False)),
                ("email_error", models.TextField(blank=True, null=True)),
                ("customer_email_sent", models.BooleanField(default=False)),
                ("customer_email_error", models.TextField(blank=True, null=True)),
                ("shipping_label_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("tracking_number", models.CharField(blank=True, max_length=120, null=True)),
                ("carrier", models.CharField(blank=True, max_length=60, null=True)),
                ("service", models.CharField(blank=True, max_length=120, null=True)),
                ("label_cost_cents", models.IntegerField(blank=True, null=True)),
                ("label_status", models.CharField(blank=True, max_length=40, null=True)),
                ("seller", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="orders", to="catalog.profile",
                )),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-date_created", "-id"],
                "indexes": [
                    models.Index(fields=["status"], name="idx_orders_status"),
                    models.Index(fields=["fulfilled"], name="idx_orders_fulfilled"),
                    models.Index(fields=["tracking_number"], name="idx_orders_tracking"),
                    models.Index(fields=["date_created"], name="idx_orders_date"),
                ],
            },
        ),
    ]
