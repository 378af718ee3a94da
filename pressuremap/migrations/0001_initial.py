import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PressureMap",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("day", models.DateField(db_index=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("patient", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="pressure_maps", to="users.patient")),
            ],
            options={
                "ordering": ["day", "id"],
            },
        ),
        migrations.CreateModel(
            name="PressureFrame",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("timestamp", models.DateTimeField(db_index=True)),
                ("grid", models.JSONField(default=list)),
                ("average_pressure", models.IntegerField(default=0)),
                ("min_value", models.IntegerField(default=0)),
                ("max_value", models.IntegerField(default=0)),
                ("peak_pressure", models.IntegerField(default=0)),
                ("contact_area_percentage", models.FloatField(default=0.0)),
                ("pressure_map", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="frames", to="pressuremap.pressuremap")),
            ],
            options={
                "ordering": ["timestamp", "id"],
                "indexes": [models.Index(fields=["pressure_map", "timestamp"], name="pressuremap_frame_map_ts_idx")],
            },
        ),
    ]
