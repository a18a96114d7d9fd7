from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.utils import timezone
from unittest.mock import patch

from common.exceptions import DomainValidationError, InvalidStateError, NotFoundError
from notifications.models import Notification
from services.reminders import check_upcoming_trips, due_threshold, send_trip_reminder
from services.reminders import scheduler
from .models import Trip
from .tasks import check_upcoming_trips_task
from .tests import make_client, make_partner, make_vehicle, make_trip

THRESHOLDS = (30, 15, 5)


class DueThresholdTests(TestCase):
	def test_tightest_crossed_threshold_wins(self):
		self.assertEqual(due_threshold(29, THRESHOLDS), 30)
		self.assertEqual(due_threshold(15, THRESHOLDS), 15)
		self.assertEqual(due_threshold(12.5, THRESHOLDS), 15)
		self.assertEqual(due_threshold(5, THRESHOLDS), 5)
		self.assertEqual(due_threshold(0.5, THRESHOLDS), 5)

	def test_outside_the_window(self):
		self.assertIsNone(due_threshold(31, THRESHOLDS))
		self.assertIsNone(due_threshold(0, THRESHOLDS))
		self.assertIsNone(due_threshold(-3, THRESHOLDS))


class ReminderSweepTests(TestCase):
	def setUp(self):
		self.now = timezone.now()
		self.client_user = make_client()
		self.partner = make_partner()
		self.vehicle = make_vehicle(self.partner)

	def _scheduled(self, minutes_out, status=Trip.ACCEPTED, assigned=True, **extra):
		return make_trip(
			self.client_user,
			status=status,
			partner=self.partner if assigned else None,
			vehicle=self.vehicle if assigned else None,
			is_scheduled=True,
			departure_at=self.now + timedelta(minutes=minutes_out),
			**extra
		)

	def _reminders(self, user):
		return Notification.objects.filter(user=user, title='Upcoming Trip Reminder')

	def test_reminder_sent_once_per_threshold(self):
		trip = self._scheduled(29)

		result = check_upcoming_trips(now=self.now)

		self.assertEqual(result, {'processed': 1, 'notifications_sent': 1})
		self.assertEqual(self._reminders(self.client_user).count(), 1)
		self.assertEqual(self._reminders(self.partner).count(), 1)
		self.assertIn('30 minutes', self._reminders(self.client_user).get().message)
		trip.refresh_from_db()
		self.assertEqual(trip.reminders_sent, [30])

		# Five minutes later the trip is 25 minutes out: nothing new is due
		result = check_upcoming_trips(now=self.now + timedelta(minutes=4))
		self.assertEqual(result['notifications_sent'], 0)
		self.assertEqual(self._reminders(self.client_user).count(), 1)

		# At 14 minutes out the 15-minute reminder fires
		result = check_upcoming_trips(now=self.now + timedelta(minutes=15))
		self.assertEqual(result['notifications_sent'], 1)
		trip.refresh_from_db()
		self.assertEqual(trip.reminders_sent, [30, 15])

	def test_late_sweep_skips_stale_larger_thresholds(self):
		trip = self._scheduled(12)

		check_upcoming_trips(now=self.now)
		trip.refresh_from_db()
		self.assertEqual(trip.reminders_sent, [30, 15])
		self.assertIn('15 minutes', self._reminders(self.client_user).get().message)

		result = check_upcoming_trips(now=self.now + timedelta(minutes=1))
		self.assertEqual(result['notifications_sent'], 0)

	def test_unassigned_trip_reminds_client_only(self):
		self._scheduled(4, status=Trip.WAITING_APPROVAL, assigned=False)

		result = check_upcoming_trips(now=self.now)

		self.assertEqual(result['notifications_sent'], 1)
		self.assertEqual(self._reminders(self.client_user).count(), 1)
		self.assertEqual(self._reminders(self.partner).count(), 0)

	def test_only_upcoming_scheduled_trips_are_swept(self):
		self._scheduled(45)
		self._scheduled(-5)
		self._scheduled(10, status=Trip.IN_PROGRESS)
		self._scheduled(10, status=Trip.CANCELLED)
		make_trip(self.client_user, departure_at=self.now + timedelta(minutes=10))

		result = check_upcoming_trips(now=self.now)

		self.assertEqual(result, {'processed': 1, 'notifications_sent': 0})
		self.assertFalse(self._reminders(self.client_user).exists())

	def test_failure_on_one_trip_does_not_stop_the_sweep(self):
		broken = self._scheduled(20)
		healthy = self._scheduled(25)
		real_send = scheduler._send_reminders

		def flaky_send(trip, threshold):
			if trip.pk == broken.pk:
				raise RuntimeError('notification backend down')
			return real_send(trip, threshold)

		with patch('services.reminders.scheduler._send_reminders', side_effect=flaky_send):
			with self.assertLogs('services.reminders.scheduler', level='ERROR'):
				result = check_upcoming_trips(now=self.now)

		self.assertEqual(result, {'processed': 2, 'notifications_sent': 1})
		broken.refresh_from_db()
		healthy.refresh_from_db()
		# The failed trip is retried on the next sweep
		self.assertEqual(broken.reminders_sent, [])
		self.assertEqual(healthy.reminders_sent, [30])

	def test_management_command(self):
		self._scheduled(29)
		out = StringIO()

		call_command('check_upcoming_trips', stdout=out)

		self.assertIn('sent 1 reminder(s)', out.getvalue())

	def test_celery_task(self):
		self._scheduled(29)

		result = check_upcoming_trips_task()

		self.assertEqual(result, {'processed': 1, 'notifications_sent': 1})


class ManualReminderTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.partner = make_partner()
		self.trip = make_trip(
			self.client_user,
			status=Trip.ACCEPTED,
			partner=self.partner,
			vehicle=make_vehicle(self.partner),
			is_scheduled=True,
			departure_at=timezone.now() + timedelta(hours=3),
		)

	def _reminders(self):
		return Notification.objects.filter(title='Upcoming Trip Reminder', related_id=str(self.trip.id))

	def test_reminds_both_parties_without_marking_thresholds(self):
		send_trip_reminder(self.trip.id, 45)

		self.assertEqual(self._reminders().count(), 2)
		self.assertIn('45 minutes', self._reminders().get(user=self.client_user).message)
		self.assertTrue(self._reminders().filter(user=self.partner).exists())

		self.trip.refresh_from_db()
		self.assertEqual(self.trip.reminders_sent, [])

	def test_immediate_trip_is_rejected(self):
		instant = make_trip(self.client_user)

		with self.assertRaises(InvalidStateError) as ctx:
			send_trip_reminder(instant.id, 15)
		self.assertEqual(ctx.exception.error_code, 'trip_not_scheduled')
		self.assertFalse(Notification.objects.filter(related_id=str(instant.id)).exists())

	def test_unknown_trip_and_bad_minutes(self):
		with self.assertRaises(NotFoundError):
			send_trip_reminder(999999, 15)
		with self.assertRaises(DomainValidationError):
			send_trip_reminder(self.trip.id, 0)
		self.assertFalse(self._reminders().exists())

	def test_management_command_for_one_trip(self):
		out = StringIO()

		call_command('check_upcoming_trips', trip=self.trip.id, minutes=10, stdout=out)

		self.assertIn('Sent reminder for trip %d' % self.trip.id, out.getvalue())
		self.assertEqual(self._reminders().count(), 2)

		with self.assertRaises(CommandError):
			call_command('check_upcoming_trips', trip=make_trip(self.client_user).id, stdout=StringIO())
