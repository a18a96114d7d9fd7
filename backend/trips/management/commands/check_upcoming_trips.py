from django.core.management.base import BaseCommand, CommandError

from common.exceptions import ServiceError
from services.reminders import check_upcoming_trips, send_trip_reminder


class Command(BaseCommand):
    help = "Send due pre-departure reminders for scheduled trips (normally run by Celery beat)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--trip", type=int, help="Send a reminder for this scheduled trip now instead of sweeping."
        )
        parser.add_argument(
            "--minutes", type=int, default=30, help="Minutes before departure quoted in a --trip reminder."
        )

    def handle(self, *args, **options):
        if options.get("trip") is not None:
            try:
                send_trip_reminder(options["trip"], options["minutes"])
            except ServiceError as exc:
                raise CommandError(exc.message)
            self.stdout.write(self.style.SUCCESS(f"Sent reminder for trip {options['trip']}."))
            return

        result = check_upcoming_trips()
        self.stdout.write(
            self.style.SUCCESS(
                f"Processed {result['processed']} scheduled trip(s), "
                f"sent {result['notifications_sent']} reminder(s)."
            )
        )
