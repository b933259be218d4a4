"""
Management command to add the default product categories
"""
from django.core.management.base import BaseCommand
from backend.catalog.models import Category

DEFAULT_CATEGORIES = [
    'Algemeen',
    'Beveiliging',
    'Toegangscontrole',
    'Cilinders',
    'Sleutels',
]


class Command(BaseCommand):
    help = "Adds the default product categories to the database"

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("ADDING PRODUCT CATEGORIES"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        created_count = 0
        skipped_count = 0

        for category_name in DEFAULT_CATEGORIES:
            category, created = Category.objects.get_or_create(name=category_name)
            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"  ✓ Created: {category_name}"))
            else:
                skipped_count += 1
                self.stdout.write(self.style.WARNING(f"  ⊘ Skipped (already exists): {category_name}"))

        self.stdout.write(f"Categories Created: {created_count}")
        self.stdout.write(f"Categories Skipped (already exist): {skipped_count}")
        self.stdout.write(f"Total Categories in Database: {Category.objects.count()}")
