from django.core.management.base import BaseCommand
from django.utils import timezone
from datetime import timedelta
import logging

from notifications.models import Notification
from trips.models import TripDecline

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Clean up old read notifications and declines on finished trips."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=30,
            help="Delete records older than this many days (default: 30).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be deleted without actually deleting.",
        )

    def handle(self, *args, **options):
        days = options["days"]
        dry_run = options["dry_run"]
        cutoff = timezone.now() - timedelta(days=days)

        old_notifications = Notification.objects.filter(read=True, created_at__lt=cutoff)
        notifications_count = old_notifications.count()

        # Declines only matter while the trip is still open
        stale_declines = TripDecline.objects.filter(created_at__lt=cutoff).exclude(
            trip__status="waiting_approval"
        )
        declines_count = stale_declines.count()

        if dry_run:
            self.stdout.write(
                self.style.WARNING(
                    f"DRY RUN: Would delete {notifications_count} read notifications and "
                    f"{declines_count} trip declines older than {days} days."
                )
            )
            return

        old_notifications.delete()
        stale_declines.delete()
        logger.info("Cleaned up %d notifications and %d trip declines", notifications_count, declines_count)
        self.stdout.write(
            self.style.SUCCESS(
                f"Deleted {notifications_count} read notifications and "
                f"{declines_count} trip declines older than {days} days."
            )
        )
