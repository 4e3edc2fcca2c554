from django.db import migrations, models

import powergrid.models


NODE_TYPE_CHOICES = [
    ("BATTERY", "Battery"),
    ("SOLAR", "Solar array"),
    ("LOAD", "Load"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Battery",
            fields=[
                ("id", models.CharField(default=powergrid.models.new_entity_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ("max_w", models.FloatField(default=0)),
                ("active_w", models.FloatField(default=0)),
                ("capacity_wh", models.FloatField()),
                ("charge_wh", models.FloatField(default=0)),
                ("power_token", models.CharField(blank=True, default="", max_length=32)),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="SolarArray",
            fields=[
                ("id", models.CharField(default=powergrid.models.new_entity_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ("max_w", models.FloatField(default=0)),
                ("active_w", models.FloatField(default=0)),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Load",
            fields=[
                ("id", models.CharField(default=powergrid.models.new_entity_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ("max_w", models.FloatField(default=0)),
                ("active_w", models.FloatField(default=0)),
                ("power_token", models.CharField(blank=True, default="", max_length=32)),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="PowerConnection",
            fields=[
                ("id", models.CharField(default=powergrid.models.new_entity_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ("source_type", models.CharField(choices=NODE_TYPE_CHOICES, max_length=16)),
                ("source_id", models.CharField(max_length=32)),
                ("sink_type", models.CharField(choices=NODE_TYPE_CHOICES, max_length=16)),
                ("sink_id", models.CharField(max_length=32)),
                ("power_token", models.CharField(blank=True, default="", max_length=32)),
                ("connection_time_utc_seconds", models.BigIntegerField(blank=True, null=True)),
                ("expire_time_utc_seconds", models.BigIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="EventLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
    ]
