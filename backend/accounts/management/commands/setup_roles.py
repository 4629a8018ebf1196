"""
Management command: setup_roles
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with the municipality **Role** catalog and links each
technical-office role to the report categories it is responsible for.

The report categories themselves are created by the ``reports`` data
migration; this command only links to them by name.

The command is **idempotent** — safe to run multiple times.  Existing
roles are updated in place and their category links are replaced (set)
to match the mapping below.

Usage::

    python manage.py setup_roles
    python manage.py setup_roles --reset   # clear every category link first

Prerequisites::

    python manage.py migrate
"""

from django.apps import apps
from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import Role, RoleType

# ────────────────────────────────────────────────────────────────────
# Role → responsible categories
# ────────────────────────────────────────────────────────────────────
# Key:   (label, role_type, description)
# Value: names of the ReportCategory rows the role is responsible for

ROLE_CATEGORY_MAP: dict[tuple[str, str, str], list[str]] = {
    (
        "Municipal Public Relations Officer",
        RoleType.PUBLIC_RELATIONS_OFFICER,
        "Reviews incoming reports, approves or rejects them and forwards them to a technical office.",
    ): [],
    (
        "Water and Sewer Technical Office",
        RoleType.TECHNICAL_OFFICER,
        "Drinking water supply and sewer network.",
    ): ["Water Supply - Drinking Water", "Sewer System"],
    (
        "Accessibility Technical Office",
        RoleType.TECHNICAL_OFFICER,
        "Architectural barriers in public spaces.",
    ): ["Architectural Barriers"],
    (
        "Public Lighting Technical Office",
        RoleType.TECHNICAL_OFFICER,
        "Street and public area lighting.",
    ): ["Public Lighting"],
    (
        "Waste Management Technical Office",
        RoleType.TECHNICAL_OFFICER,
        "Waste collection and street cleaning.",
    ): ["Waste"],
    (
        "Mobility Technical Office",
        RoleType.TECHNICAL_OFFICER,
        "Road surfaces, urban furnishings, road signs and traffic lights.",
    ): ["Road Signs and Traffic Lights", "Roads and Urban Furnishings"],
    (
        "Parks Technical Office",
        RoleType.TECHNICAL_OFFICER,
        "Public green areas and playgrounds.",
    ): ["Public Green Areas and Playgrounds"],
    (
        "General Services Technical Office",
        RoleType.TECHNICAL_OFFICER,
        "Everything not covered by a specialised office.",
    ): ["Other"],
    (
        "External Maintainer",
        RoleType.EXTERNAL_MAINTAINER,
        "Contractor that performs the physical remediation and closes reports.",
    ): [],
}


class Command(BaseCommand):
    help = (
        "Seeds the municipality role catalog and links technical-office "
        "roles to the report categories they are responsible for.  Safe to "
        "run multiple times (idempotent)."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Remove every existing role/category link before seeding.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        ReportCategory = apps.get_model("reports", "ReportCategory")

        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n══════════════════════════════════════════"
            "\n  Role Setup — Seeding Municipality Roles"
            "\n══════════════════════════════════════════\n"
        ))

        if options["reset"]:
            ReportCategory.responsible_roles.through.objects.all().delete()
            self.stdout.write(self.style.WARNING("  ⚠  Cleared all category responsibilities."))

        categories = {c.name: c for c in ReportCategory.objects.all()}

        roles_created = 0
        roles_updated = 0
        warnings = 0

        for (label, role_type, description), category_names in ROLE_CATEGORY_MAP.items():
            # ── 1. Idempotent role creation / update ────────────────
            role, created = Role.objects.get_or_create(
                label=label,
                defaults={"role_type": role_type, "description": description},
            )
            if not created and (role.role_type != role_type or role.description != description):
                role.role_type = role_type
                role.description = description
                role.save(update_fields=["role_type", "description"])

            # ── 2. Resolve category names ───────────────────────────
            resolved = []
            for name in category_names:
                category = categories.get(name)
                if category is None:
                    warnings += 1
                    self.stdout.write(self.style.WARNING(
                        f"  ⚠  Category '{name}' not found — skipped for role "
                        f"'{label}'.  (Run migrate first?)"
                    ))
                else:
                    resolved.append(category)

            # ── 3. Replace the responsibility links ─────────────────
            role.responsible_categories.set(resolved)

            if created:
                roles_created += 1
            else:
                roles_updated += 1

            action = "Created" if created else "Updated"
            self.stdout.write(self.style.SUCCESS(
                f"  ✔  {action} role: {label:<36s} "
                f"({role_type}, categories={len(resolved)})"
            ))

        # ── Summary ─────────────────────────────────────────────────
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n──────────────────────────────────────────"
        ))
        summary = (
            f"  Done!  {roles_created} role(s) created, "
            f"{roles_updated} role(s) updated."
        )
        if warnings:
            summary += f"  ({warnings} category warning(s) — see above.)"
        self.stdout.write(self.style.SUCCESS(summary + "\n"))
