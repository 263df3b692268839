from django.core.management.base import BaseCommand

from ....common.services.mongo_client import mongo_connection
from ...services.schema import initialize_database


class Command(BaseCommand):
    help = "Applies collection validators and indexes to MongoDB. Writes no documents."

    def handle(self, *args, **options):
        database = mongo_connection.database()
        if database is None:
            self.stdout.write(self.style.WARNING("Memory store configured; nothing to initialize"))
            return
        created = initialize_database(database)
        for name, count in created.items():
            self.stdout.write(f"{name}: {count} indexes")
        self.stdout.write(self.style.SUCCESS("Store initialized"))
