from django.db import migrations

CATEGORIES = [
    ("Water Supply - Drinking Water", "droplet", "Leaks, outages and quality of the drinking water supply."),
    ("Architectural Barriers", "accessibility", "Obstacles that prevent access for people with reduced mobility."),
    ("Sewer System", "pipe", "Blocked drains, overflows and damaged manholes."),
    ("Public Lighting", "lightbulb", "Broken or malfunctioning street lights."),
    ("Waste", "trash", "Abandoned waste, overflowing bins and missed collections."),
    ("Road Signs and Traffic Lights", "traffic-light", "Damaged or missing signs and faulty traffic lights."),
    ("Roads and Urban Furnishings", "road", "Potholes, damaged pavements and broken benches."),
    ("Public Green Areas and Playgrounds", "tree", "Parks, trees and playground equipment."),
    ("Other", "dots", "Anything that does not fit the other categories."),
]


def seed_categories(apps, schema_editor):
    ReportCategory = apps.get_model("reports", "ReportCategory")
    for name, icon, description in CATEGORIES:
        ReportCategory.objects.update_or_create(
            name=name,
            defaults={"icon": icon, "description": description, "is_active": True},
        )


def unseed_categories(apps, schema_editor):
    ReportCategory = apps.get_model("reports", "ReportCategory")
    ReportCategory.objects.filter(
        name__in=[name for name, _, _ in CATEGORIES],
        reports__isnull=True,
    ).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("reports", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_categories, unseed_categories),
    ]
