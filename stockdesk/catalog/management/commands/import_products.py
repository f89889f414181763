"""
Management command to import products from a spreadsheet export
(CÓDIGO;NOMBRE;LÍNEA;DETALLES;STOCK;PRECIO)
"""
import os

from django.core.management.base import BaseCommand, CommandError

from stockdesk.catalog.importer import parse_bulk_text
from stockdesk.datastore.exceptions import DataStoreError
from stockdesk.datastore.gateway import get_gateway


class Command(BaseCommand):
    help = "Imports products from a ';' or ',' separated text file"

    def add_arguments(self, parser):
        parser.add_argument('file', type=str, help='Path to the text/CSV file')
        parser.add_argument(
            '--encoding',
            type=str,
            default='utf-8',
            help='File encoding (default: utf-8)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Parse and report without writing to the data store',
        )

    def handle(self, *args, **options):
        path = options['file']
        dry_run = options['dry_run']

        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("IMPORTING PRODUCTS"))
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(f"File: {path}")

        if not os.path.exists(path):
            raise CommandError(f"File not found at {path}")

        with open(path, encoding=options['encoding']) as f:
            result = parse_bulk_text(f.read())

        for error in result.errors:
            self.stdout.write(self.style.WARNING(error))

        if not result.products:
            self.stdout.write(self.style.ERROR(result.summary()))
            return

        if dry_run:
            self.stdout.write(self.style.WARNING(f"Dry run: {len(result.products)} products parsed, nothing written."))
            return

        gateway = get_gateway()
        if gateway.degraded:
            self.stdout.write(self.style.WARNING("Remote store unavailable, importing into the local mirror."))

        try:
            message = gateway.bulk_insert(result.products)
        except DataStoreError as e:
            raise CommandError(f"Import failed: {str(e)}")

        self.stdout.write(self.style.SUCCESS(message))
        self.stdout.write(self.style.SUCCESS(result.summary()))
