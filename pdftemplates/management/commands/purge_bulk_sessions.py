from django.core.management.base import BaseCommand

from pdftemplates.services.bulk import purge_sessions


class Command(BaseCommand):
    help = 'Delete bulk generation sessions older than the given number of hours'

    def add_arguments(self, parser):
        parser.add_argument('--hours', type=float, default=24, help='Minimum age of the sessions to delete')

    def handle(self, *args, **options):
        removed = purge_sessions(older_than_hours=options['hours'])
        if removed:
            self.stdout.write(self.style.SUCCESS(f"Removed {len(removed)} bulk session(s):"))
            for name in removed:
                self.stdout.write(f"  {name}")
        else:
            self.stdout.write(self.style.SUCCESS("No bulk sessions to remove."))
