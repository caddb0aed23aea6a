from django.core.management.base import BaseCommand
from django.db import transaction

from tracking_core.models import Department
from tracking_core.tracking import DEPARTMENT_SUB_STATUSES


DEFAULT_DEPARTMENTS = {
    "inventory": ("Inventory", "Leather and material availability"),
    "cutting": ("Cutting", "Pattern cutting"),
    "embroidery": ("Embroidery", "Embroidery and patches"),
    "rivets": ("Rivets", "Rivet and hardware installation"),
    "stitching": ("Stitching", "Garment assembly"),
    "packing": ("Packing", "Final packing"),
    "quality-control": ("Quality Control", "Inspection before shipping"),
    "logistics": ("Logistics", "Shipping and delivery"),
}


class Command(BaseCommand):
    help = "Create the standard production departments (idempotent)"

    @transaction.atomic
    def handle(self, *args, **options):
        created = 0
        for code in DEPARTMENT_SUB_STATUSES:
            name, description = DEFAULT_DEPARTMENTS.get(code, (code.replace("-", " ").title(), ""))
            _, was_created = Department.objects.get_or_create(
                code=code,
                defaults={"name": name, "description": description},
            )
            if was_created:
                created += 1
                self.stdout.write(f"Created department: {name} ({code})")
            else:
                self.stdout.write(f"Department already exists: {name} ({code})")

        self.stdout.write(self.style.SUCCESS(f"{created} department(s) created"))
