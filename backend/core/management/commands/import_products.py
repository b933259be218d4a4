"""
Management command to import products from a CSV file
"""
import os

from django.core.management.base import BaseCommand, CommandError
from backend.catalog.utils import bulk_create_products, read_products_csv
from backend.core.exceptions import DomainValidationError


class Command(BaseCommand):
    help = "Imports products from a CSV file; invalid rows are skipped and reported"

    def add_arguments(self, parser):
        parser.add_argument('csv_file', type=str, help='Path to the CSV file')

    def handle(self, *args, **options):
        csv_file = options['csv_file']
        if not os.path.exists(csv_file):
            raise CommandError(f"CSV file not found at {csv_file}")

        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("IMPORTING PRODUCTS FROM CSV"))
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(f"CSV File: {csv_file}")

        with open(csv_file, 'rb') as f:
            try:
                rows = read_products_csv(f)
            except DomainValidationError as e:
                raise CommandError(f"{e.detail}: {e.details}")

        created, errors = bulk_create_products(rows)

        for error in errors:
            self.stdout.write(self.style.ERROR(f"  ✗ Row {error['row']}: {error['errors']}"))

        self.stdout.write(f"Products Created: {len(created)}")
        self.stdout.write(f"Rows Skipped: {len(errors)}")
