"""
Management command to report which data store tier is active
"""
from django.conf import settings
from django.core.management.base import BaseCommand

from stockdesk.datastore.exceptions import DataStoreError
from stockdesk.datastore.gateway import get_gateway


class Command(BaseCommand):
    help = 'Report the active data store tier and its product count'

    def handle(self, *args, **options):
        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS("DATA STORE STATUS"))
        self.stdout.write("=" * 80)
        self.stdout.write(f"Configured backend: {settings.DATASTORE_BACKEND}")

        gateway = get_gateway()
        if gateway.degraded:
            self.stdout.write(self.style.WARNING(f"Active tier: {gateway.backend} (degraded mode)"))
            self.stdout.write(f"Mirror file: {settings.DATASTORE_MIRROR_PATH}")
        else:
            self.stdout.write(self.style.SUCCESS(f"Active tier: {gateway.backend}"))

        try:
            products = gateway.fetch_all()
        except DataStoreError as e:
            self.stdout.write(self.style.ERROR(f"Error reading products: {str(e)}"))
            return

        self.stdout.write(f"Products: {len(products)}")
        if gateway.degraded and gateway.backend != 'local':
            self.stdout.write(self.style.WARNING("Remote read failed, products were read from the local mirror."))
