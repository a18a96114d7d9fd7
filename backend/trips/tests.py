import itertools
from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate
from unittest.mock import patch

from accounts.models import User
from accounts.services import update_partner_profile
from common.exceptions import DomainValidationError, InvalidStateError, UnauthorizedError
from drivers.models import DriverProfile
from notifications.models import Notification
from services.trip_management import (
	create_trip_request,
	accept_trip,
	refuse_trip,
	advance_trip,
	cancel_trip,
	compute_estimated_arrival,
	set_trip_pricing,
	set_payment_method,
	submit_review,
	get_user_review_stats,
	send_message,
	list_trip_messages,
	mark_messages_read,
	count_unread_messages,
	list_open_trip_requests,
	get_total_earnings,
	TripNotAvailableError,
	InvalidTransitionError,
	NotTripParticipantError,
	DuplicateReviewError,
)
from services.trip_management import lifecycle
from vehicles.models import Vehicle
from .models import Trip, TripDecline
from .serializers import to_canonical_status, parse_status_filter
from . import views

PICKUP = {'address': 'Avenue Habib Bourguiba, Tunis', 'latitude': Decimal('36.800000'), 'longitude': Decimal('10.180000')}
DROPOFF = {'address': 'Carthage', 'latitude': Decimal('36.852800'), 'longitude': Decimal('10.323300'), 'place_name': 'Carthage Ruins'}

_plates = itertools.count(1)


def make_client(username='client', **extra):
	extra.setdefault('is_verified', True)
	extra.setdefault('verification_status', 'none')
	return User.objects.create_user(
		username=username,
		email=f'{username}@example.com',
		password='pass1234',
		user_type='client',
		first_name=username.title(),
		**extra
	)


def make_partner(username='partner', verified=True, **extra):
	partner = User.objects.create_user(
		username=username,
		email=f'{username}@example.com',
		password='pass1234',
		user_type='partner',
		first_name=username.title(),
		is_verified=verified,
		verification_status='approved' if verified else 'pending',
		**extra
	)
	DriverProfile.objects.create(user=partner, status='available')
	return partner


def make_vehicle(owner, capacity=4, category='standard', status='active', base_fare='10.00'):
	return Vehicle.objects.create(
		owner=owner,
		brand='Toyota',
		model='Corolla',
		year='2021',
		license_plate=f'TN-{next(_plates):04d}',
		capacity=capacity,
		price_per_km='1.50',
		base_fare=base_fare,
		category=category,
		status=status,
	)


def make_trip(client, status=Trip.WAITING_APPROVAL, partner=None, vehicle=None, **extra):
	fields = dict(
		client=client,
		partner=partner,
		vehicle=vehicle,
		status=status,
		pickup_address=PICKUP['address'],
		pickup_latitude=PICKUP['latitude'],
		pickup_longitude=PICKUP['longitude'],
		dropoff_address=DROPOFF['address'],
		dropoff_latitude=DROPOFF['latitude'],
		dropoff_longitude=DROPOFF['longitude'],
	)
	fields.update(extra)
	return Trip.objects.create(**fields)


class TripLifecycleTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.partner = make_partner()
		self.vehicle = make_vehicle(self.partner)

	def _request(self, passengers=1, timing=None):
		return create_trip_request(
			self.client_user, PICKUP, DROPOFF, {'passengers': passengers}, timing or {}
		).trip

	def test_create_trip_request_waits_for_a_partner(self):
		trip = self._request(passengers=2)

		self.assertEqual(trip.status, Trip.WAITING_APPROVAL)
		self.assertIsNone(trip.partner_id)
		self.assertIsNone(trip.vehicle_id)
		self.assertEqual(trip.passengers, 2)
		self.assertEqual(trip.dropoff_place_name, 'Carthage Ruins')
		self.assertEqual(trip.created_at, trip.updated_at)
		self.assertTrue(
			Notification.objects.filter(user=self.client_user, title='Trip Request Created').exists()
		)

	def test_partner_cannot_request_trip(self):
		with self.assertRaises(UnauthorizedError):
			create_trip_request(self.partner, PICKUP, DROPOFF, {}, {})

	def test_scheduled_trip_requires_departure(self):
		with self.assertRaises(DomainValidationError):
			self._request(timing={'is_scheduled': True})

	def test_trip_runs_from_request_to_completion(self):
		trip = self._request()

		result = accept_trip(trip.id, self.partner, self.vehicle.id, 12)
		self.assertEqual(result.trip.status, Trip.ACCEPTED)
		self.assertEqual(result.trip.partner, self.partner)
		self.assertEqual(result.trip.vehicle, self.vehicle)
		self.assertIsNotNone(result.trip.accepted_at)

		self.partner.driver_profile.refresh_from_db()
		self.assertEqual(self.partner.driver_profile.status, 'busy')

		for step in [Trip.DRIVER_ON_THE_WAY, Trip.ARRIVED_AT_PICKUP, Trip.IN_PROGRESS, Trip.COMPLETED]:
			result = advance_trip(trip.id, self.partner, step)
			self.assertEqual(result.trip.status, step)

		trip.refresh_from_db()
		self.client_user.refresh_from_db()
		self.partner.refresh_from_db()
		self.partner.driver_profile.refresh_from_db()

		self.assertIsNotNone(trip.completed_at)
		self.assertEqual(self.client_user.completed_trips, 1)
		self.assertEqual(self.partner.completed_trips, 1)
		self.assertEqual(self.partner.driver_profile.status, 'available')

		titles = set(Notification.objects.filter(user=self.client_user).values_list('title', flat=True))
		self.assertTrue({'Trip Accepted', 'Driver On The Way', 'Driver Arrived', 'Trip Started', 'Trip Completed'} <= titles)

	def test_only_one_partner_can_accept(self):
		trip = self._request()
		rival = make_partner('rival')
		rival_vehicle = make_vehicle(rival)

		accept_trip(trip.id, self.partner, self.vehicle.id, 10)
		with self.assertRaises(TripNotAvailableError):
			accept_trip(trip.id, rival, rival_vehicle.id, 5)

		trip.refresh_from_db()
		self.assertEqual(trip.partner, self.partner)
		rival.driver_profile.refresh_from_db()
		self.assertEqual(rival.driver_profile.status, 'available')

	def test_accept_rejects_unusable_vehicles(self):
		trip = self._request(passengers=4)
		other = make_partner('other')

		with self.assertRaises(UnauthorizedError):
			accept_trip(trip.id, other, self.vehicle.id, 10)

		parked = make_vehicle(self.partner, status='maintenance')
		with self.assertRaises(InvalidStateError):
			accept_trip(trip.id, self.partner, parked.id, 10)

		small = make_vehicle(self.partner, capacity=2)
		with self.assertRaises(DomainValidationError):
			accept_trip(trip.id, self.partner, small.id, 10)

		trip.refresh_from_db()
		self.assertEqual(trip.status, Trip.WAITING_APPROVAL)

	def test_client_cannot_accept(self):
		trip = self._request()
		with self.assertRaises(UnauthorizedError):
			accept_trip(trip.id, self.client_user, self.vehicle.id, 10)

	def test_partner_back_in_review_cannot_accept(self):
		trip = self._request()
		update_partner_profile(self.partner, city='Sousse')

		with self.assertRaises(UnauthorizedError) as ctx:
			accept_trip(trip.id, self.partner, self.vehicle.id, 10)
		self.assertEqual(ctx.exception.error_code, 'partner_not_verified')

		trip.refresh_from_db()
		self.assertEqual(trip.status, Trip.WAITING_APPROVAL)
		self.assertIsNone(trip.partner_id)

	def test_acceptance_lost_between_read_and_write(self):
		trip = self._request()
		rival = make_partner('rival')
		rival_vehicle = make_vehicle(rival)
		real_get_trip = lifecycle.get_trip

		def read_then_rival_accepts(trip_id):
			stale = real_get_trip(trip_id)
			Trip.objects.filter(pk=trip_id).update(status=Trip.ACCEPTED, partner=rival, vehicle=rival_vehicle)
			return stale

		with patch('services.trip_management.lifecycle.get_trip', side_effect=read_then_rival_accepts):
			with self.assertRaises(TripNotAvailableError):
				accept_trip(trip.id, self.partner, self.vehicle.id, 10)

		trip.refresh_from_db()
		self.assertEqual(trip.partner, rival)
		self.assertEqual(trip.vehicle, rival_vehicle)
		self.partner.driver_profile.refresh_from_db()
		self.assertEqual(self.partner.driver_profile.status, 'available')
		self.assertFalse(Notification.objects.filter(user=self.client_user, title='Trip Accepted').exists())

	def test_status_only_moves_one_step_forward(self):
		trip = self._request()
		accept_trip(trip.id, self.partner, self.vehicle.id, 10)

		with self.assertRaises(InvalidTransitionError):
			advance_trip(trip.id, self.partner, Trip.ARRIVED_AT_PICKUP)
		with self.assertRaises(InvalidTransitionError):
			advance_trip(trip.id, self.partner, Trip.ACCEPTED)

		advance_trip(trip.id, self.partner, Trip.DRIVER_ON_THE_WAY)
		with self.assertRaises(InvalidTransitionError):
			advance_trip(trip.id, self.partner, Trip.DRIVER_ON_THE_WAY)

		trip.refresh_from_db()
		self.assertEqual(trip.status, Trip.DRIVER_ON_THE_WAY)

	def test_only_assigned_partner_can_advance(self):
		trip = self._request()
		accept_trip(trip.id, self.partner, self.vehicle.id, 10)

		with self.assertRaises(NotTripParticipantError):
			advance_trip(trip.id, make_partner('intruder'), Trip.DRIVER_ON_THE_WAY)

	def test_advancing_a_cancelled_trip_reports_not_available(self):
		trip = self._request()
		accept_trip(trip.id, self.partner, self.vehicle.id, 10)
		cancel_trip(trip.id, self.client_user, 'Plans changed')

		with self.assertRaises(TripNotAvailableError):
			advance_trip(trip.id, self.partner, Trip.DRIVER_ON_THE_WAY)

	def test_client_cancel_frees_partner_and_notifies_both(self):
		trip = self._request()
		accept_trip(trip.id, self.partner, self.vehicle.id, 10)

		result = cancel_trip(trip.id, self.client_user, 'Plans changed')

		self.assertEqual(result.trip.status, Trip.CANCELLED)
		self.assertEqual(result.trip.cancelled_by, 'client')
		self.assertEqual(result.trip.cancellation_reason, 'Plans changed')
		self.assertTrue(result.extra['was_assigned'])
		self.partner.driver_profile.refresh_from_db()
		self.assertEqual(self.partner.driver_profile.status, 'available')
		self.assertTrue(Notification.objects.filter(user=self.client_user, title='Trip Cancelled').exists())
		self.assertTrue(Notification.objects.filter(user=self.partner, title='Trip Cancelled by Client').exists())

	def test_partner_cancel_records_partner(self):
		trip = self._request()
		accept_trip(trip.id, self.partner, self.vehicle.id, 10)

		result = cancel_trip(trip.id, self.partner, 'Flat tyre')

		self.assertEqual(result.trip.cancelled_by, 'partner')
		self.assertTrue(
			Notification.objects.filter(user=self.client_user, title='Trip Cancelled by Driver').exists()
		)

	def test_terminal_trips_cannot_be_cancelled(self):
		trip = make_trip(self.client_user, status=Trip.COMPLETED, partner=self.partner, vehicle=self.vehicle)

		with self.assertRaises(InvalidStateError) as ctx:
			cancel_trip(trip.id, self.client_user)
		self.assertEqual(ctx.exception.error_code, 'trip_not_cancellable')

	def test_strangers_cannot_cancel(self):
		trip = self._request()

		with self.assertRaises(NotTripParticipantError):
			cancel_trip(trip.id, make_client('stranger'))
		with self.assertRaises(NotTripParticipantError):
			cancel_trip(trip.id, self.partner)

	def test_refuse_hides_trip_from_that_partner_only(self):
		trip = self._request()
		other = make_partner('other')
		make_vehicle(other)

		result = refuse_trip(trip.id, self.partner, 'Too far')
		self.assertFalse(result.extra['already_declined'])
		self.assertTrue(TripDecline.objects.filter(trip=trip, partner=self.partner).exists())

		trip.refresh_from_db()
		self.assertEqual(trip.status, Trip.WAITING_APPROVAL)

		again = refuse_trip(trip.id, self.partner)
		self.assertTrue(again.extra['already_declined'])
		self.assertEqual(TripDecline.objects.filter(trip=trip).count(), 1)

		self.assertNotIn(trip, list_open_trip_requests(self.partner))
		self.assertIn(trip, list_open_trip_requests(other))

		with self.assertRaises(TripNotAvailableError):
			accept_trip(trip.id, self.partner, self.vehicle.id, 10)

	def test_refuse_after_acceptance_is_rejected(self):
		trip = self._request()
		accept_trip(trip.id, self.partner, self.vehicle.id, 10)

		with self.assertRaises(TripNotAvailableError):
			refuse_trip(trip.id, make_partner('late'))

	def test_open_requests_respect_vehicle_capacity(self):
		small_trip = self._request(passengers=3)
		big_trip = self._request(passengers=6)

		open_ids = [t.id for t in list_open_trip_requests(self.partner)]

		self.assertIn(small_trip.id, open_ids)
		self.assertNotIn(big_trip.id, open_ids)

	def test_estimated_arrival(self):
		self.assertEqual(compute_estimated_arrival(6), 12.0)
		self.assertEqual(compute_estimated_arrival(6, 40), 9.0)
		with self.assertRaises(DomainValidationError):
			compute_estimated_arrival(6, 0)

	def test_pricing_and_earnings(self):
		trip = make_trip(self.client_user, status=Trip.COMPLETED, partner=self.partner, vehicle=self.vehicle)
		pricing = {'base_fare': 10, 'distance_fare': 12.5, 'taxes': 2.5, 'total': 25, 'currency': 'TND'}

		result = set_trip_pricing(trip.id, self.partner, pricing)
		self.assertEqual(result.trip.pricing['total'], 25)

		make_trip(
			self.client_user, status=Trip.COMPLETED, partner=self.partner, vehicle=self.vehicle,
			pricing={'base_fare': 5, 'distance_fare': 5, 'taxes': 0.5, 'total': 10.5, 'currency': 'TND'},
		)
		self.assertEqual(get_total_earnings(self.partner), Decimal('35.5'))

		with self.assertRaises(DomainValidationError):
			set_trip_pricing(trip.id, self.partner, {'total': 3})

	def test_payment_method_is_client_only(self):
		trip = self._request()

		result = set_payment_method(trip.id, self.client_user, 'cash')
		self.assertEqual(result.trip.payment_method, 'cash')
		self.assertTrue(Notification.objects.filter(user=self.client_user, type='payment').exists())

		with self.assertRaises(NotTripParticipantError):
			set_payment_method(trip.id, self.partner, 'card')
		with self.assertRaises(DomainValidationError):
			set_payment_method(trip.id, self.client_user, 'bitcoin')


class ReviewTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.partner = make_partner()
		self.vehicle = make_vehicle(self.partner)
		self.trip = make_trip(self.client_user, status=Trip.COMPLETED, partner=self.partner, vehicle=self.vehicle)

	def test_rating_is_mean_of_received_reviews(self):
		second_client = make_client('second')
		second_trip = make_trip(second_client, status=Trip.COMPLETED, partner=self.partner, vehicle=self.vehicle)

		submit_review(self.trip.id, self.client_user, self.partner.id, 5, 'Great driver')
		submit_review(second_trip.id, second_client, self.partner.id, 4)

		self.partner.refresh_from_db()
		self.assertEqual(self.partner.rating, 4.5)

		stats = get_user_review_stats(self.partner.id)
		self.assertEqual(stats['total_reviews'], 2)
		self.assertEqual(stats['average_rating'], 4.5)
		self.assertEqual(stats['rating_distribution'], {1: 0, 2: 0, 3: 0, 4: 1, 5: 1})
		self.assertTrue(Notification.objects.filter(user=self.partner, title='New Trip Rating').exists())

	def test_one_review_per_reviewer_and_trip(self):
		submit_review(self.trip.id, self.client_user, self.partner.id, 5)

		with self.assertRaises(DuplicateReviewError):
			submit_review(self.trip.id, self.client_user, self.partner.id, 1)

		self.partner.refresh_from_db()
		self.assertEqual(self.partner.rating, 5.0)

	def test_both_sides_can_review(self):
		submit_review(self.trip.id, self.client_user, self.partner.id, 5)
		submit_review(self.trip.id, self.partner, self.client_user.id, 3)

		self.client_user.refresh_from_db()
		self.assertEqual(self.client_user.rating, 3.0)

	def test_invalid_reviews(self):
		open_trip = make_trip(self.client_user)

		with self.assertRaises(InvalidStateError):
			submit_review(open_trip.id, self.client_user, self.partner.id, 5)
		with self.assertRaises(DomainValidationError):
			submit_review(self.trip.id, self.client_user, self.partner.id, 6)
		with self.assertRaises(DomainValidationError):
			submit_review(self.trip.id, self.client_user, self.partner.id, True)
		with self.assertRaises(DomainValidationError):
			submit_review(self.trip.id, self.client_user, self.client_user.id, 4)
		with self.assertRaises(NotTripParticipantError):
			submit_review(self.trip.id, make_client('stranger'), self.partner.id, 4)

		self.partner.refresh_from_db()
		self.assertIsNone(self.partner.rating)


class TripMessageTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.partner = make_partner()
		self.trip = make_trip(
			self.client_user, status=Trip.ACCEPTED, partner=self.partner, vehicle=make_vehicle(self.partner)
		)

	def test_messages_between_participants(self):
		send_message(self.trip.id, self.client_user, 'I am at the main entrance')
		send_message(self.trip.id, self.client_user, 'Blue jacket')

		self.assertEqual(count_unread_messages(self.partner), 2)
		self.assertEqual(Notification.objects.filter(user=self.partner, type='message').count(), 2)

		messages = list_trip_messages(self.trip.id, self.partner)
		self.assertEqual([m.content for m in messages], ['I am at the main entrance', 'Blue jacket'])

		self.assertEqual(mark_messages_read(self.trip.id, self.partner), 2)
		self.assertEqual(count_unread_messages(self.partner), 0)
		# Own messages are never marked by the sender
		self.assertEqual(mark_messages_read(self.trip.id, self.client_user), 0)

	def test_non_participants_cannot_chat(self):
		with self.assertRaises(NotTripParticipantError):
			send_message(self.trip.id, make_client('stranger'), 'hello')
		with self.assertRaises(DomainValidationError):
			send_message(self.trip.id, self.client_user, '   ')


class StatusVocabularyTests(TestCase):
	def test_ui_and_camel_case_names_map_to_canonical(self):
		self.assertEqual(to_canonical_status('searching'), Trip.WAITING_APPROVAL)
		self.assertEqual(to_canonical_status('driverMatched'), Trip.ACCEPTED)
		self.assertEqual(to_canonical_status('driverOnTheWay'), Trip.DRIVER_ON_THE_WAY)
		self.assertEqual(to_canonical_status('in_progress'), Trip.IN_PROGRESS)
		with self.assertRaises(DomainValidationError):
			to_canonical_status('teleporting')

	def test_status_filter_parsing(self):
		self.assertIsNone(parse_status_filter(''))
		self.assertEqual(parse_status_filter('completed, inProgress'), [Trip.COMPLETED, Trip.IN_PROGRESS])


class TripViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.client_user = make_client()
		self.partner = make_partner()
		self.vehicle = make_vehicle(self.partner)
		self.trip = make_trip(self.client_user)

	def _post(self, view, user, data=None, **kwargs):
		request = self.factory.post('/api/trips/', data or {}, format='json')
		force_authenticate(request, user=user)
		return view(request, **kwargs)

	def test_accept_view_assigns_partner(self):
		response = self._post(
			views.accept_trip, self.partner, {'vehicle_id': self.vehicle.id, 'distance_km': 3}, trip_id=self.trip.id
		)

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['success'])
		self.assertEqual(response.data['trip']['status'], 'accepted')
		self.assertEqual(response.data['trip']['ui_status'], 'driverMatched')
		self.assertEqual(response.data['trip']['estimated_arrival_minutes'], 6.0)

	def test_losing_acceptance_race_returns_conflict(self):
		rival = make_partner('rival')
		self._post(views.accept_trip, self.partner, {'vehicle_id': self.vehicle.id, 'estimated_arrival_minutes': 5}, trip_id=self.trip.id)

		response = self._post(
			views.accept_trip, rival, {'vehicle_id': make_vehicle(rival).id, 'estimated_arrival_minutes': 5}, trip_id=self.trip.id
		)

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'trip_not_available')
		self.assertFalse(response.data['success'])

	def test_clients_cannot_use_partner_endpoints(self):
		response = self._post(
			views.accept_trip, self.client_user, {'vehicle_id': self.vehicle.id, 'estimated_arrival_minutes': 5}, trip_id=self.trip.id
		)
		self.assertEqual(response.status_code, 403)

	def test_status_view_accepts_camel_case(self):
		accept_trip(self.trip.id, self.partner, self.vehicle.id, 5)

		response = self._post(views.update_trip_status, self.partner, {'status': 'driverOnTheWay'}, trip_id=self.trip.id)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['trip']['status'], 'driver_on_the_way')

		response = self._post(views.update_trip_status, self.partner, {'status': 'completed'}, trip_id=self.trip.id)
		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'invalid_transition')

		response = self._post(views.update_trip_status, self.partner, {'status': 'flying'}, trip_id=self.trip.id)
		self.assertEqual(response.status_code, 400)

	def test_trip_detail_access(self):
		request = self.factory.get('/api/trips/%d/' % self.trip.id)
		force_authenticate(request, user=make_client('stranger'))
		response = views.trip_detail(request, trip_id=self.trip.id)
		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['error'], 'not_trip_participant')

		# Partners may look at open requests before accepting
		request = self.factory.get('/api/trips/%d/' % self.trip.id)
		force_authenticate(request, user=self.partner)
		response = views.trip_detail(request, trip_id=self.trip.id)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['pickup']['latitude'], 36.8)

		request = self.factory.get('/api/trips/999999/')
		force_authenticate(request, user=self.client_user)
		response = views.trip_detail(request, trip_id=999999)
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'trip_not_found')

	def test_cancel_view(self):
		response = self._post(views.cancel_trip, self.client_user, {'reason': 'Changed my mind'}, trip_id=self.trip.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['trip']['status'], 'cancelled')

		response = self._post(views.cancel_trip, self.client_user, {}, trip_id=self.trip.id)
		self.assertEqual(response.status_code, 409)

	def test_review_view(self):
		Trip.objects.filter(pk=self.trip.pk).update(status=Trip.COMPLETED, partner=self.partner, vehicle=self.vehicle)

		response = self._post(
			views.trip_reviews, self.client_user, {'reviewee_id': self.partner.id, 'rating': 4}, trip_id=self.trip.id
		)
		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['rating'], 4)

		response = self._post(
			views.trip_reviews, self.client_user, {'reviewee_id': self.partner.id, 'rating': 5}, trip_id=self.trip.id
		)
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'duplicate_review')

	def test_malformed_limit_is_a_bad_request(self):
		for limit in ('abc', '-1', '0'):
			request = self.factory.get('/api/trips/users/%d/reviews/' % self.partner.id, {'limit': limit})
			force_authenticate(request, user=self.client_user)
			response = views.user_reviews(request, user_id=self.partner.id)

			self.assertEqual(response.status_code, 400)
			self.assertEqual(response.data['error'], 'invalid_limit')

		request = self.factory.get('/api/trips/%d/messages/' % self.trip.id, {'limit': 'ten'})
		force_authenticate(request, user=self.client_user)
		response = views.trip_messages(request, trip_id=self.trip.id)
		self.assertEqual(response.status_code, 400)

		request = self.factory.get('/api/trips/users/%d/reviews/' % self.partner.id, {'limit': '5'})
		force_authenticate(request, user=self.client_user)
		response = views.user_reviews(request, user_id=self.partner.id)
		self.assertEqual(response.status_code, 200)

	def test_estimate_arrival_view(self):
		response = self._post(views.estimate_arrival, self.client_user, {'distance_km': 6, 'speed_kmh': 40})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['estimated_arrival_minutes'], 9.0)

	@patch('realtime.notifications.push_user_event')
	def test_acceptance_is_pushed_after_commit(self, mock_push):
		with self.captureOnCommitCallbacks(execute=True):
			self._post(views.accept_trip, self.partner, {'vehicle_id': self.vehicle.id, 'estimated_arrival_minutes': 7}, trip_id=self.trip.id)

		mock_push.assert_called_once()
		user_id, event_type, payload = mock_push.call_args[0]
		self.assertEqual(user_id, self.client_user.id)
		self.assertEqual(event_type, 'notification')
		self.assertEqual(payload['title'], 'Trip Accepted')
		self.assertEqual(payload['related_id'], str(self.trip.id))

	def test_trip_timestamps_default_to_now(self):
		before = timezone.now() - timedelta(seconds=1)
		self.assertGreater(self.trip.created_at, before)


class CleanupCommandTests(TestCase):
	def setUp(self):
		self.client_user = make_client()
		self.partner = make_partner()
		self.long_ago = timezone.now() - timedelta(days=45)

	def _old_decline(self, status):
		trip = make_trip(self.client_user, status=status)
		decline = TripDecline.objects.create(trip=trip, partner=self.partner)
		TripDecline.objects.filter(pk=decline.pk).update(created_at=self.long_ago)
		return decline

	def test_removes_stale_records(self):
		open_decline = self._old_decline(Trip.WAITING_APPROVAL)
		self._old_decline(Trip.CANCELLED)
		read = Notification.objects.create(user=self.client_user, type='system', title='Old', message='x', read=True)
		unread = Notification.objects.create(user=self.client_user, type='system', title='Old', message='y')
		Notification.objects.filter(pk__in=[read.pk, unread.pk]).update(created_at=self.long_ago)

		out = StringIO()
		call_command('cleanup_old_data', '--days', '30', stdout=out)

		self.assertIn('Deleted 1 read notifications and 1 trip declines', out.getvalue())
		self.assertEqual(list(TripDecline.objects.all()), [open_decline])
		self.assertEqual(list(Notification.objects.all()), [unread])

	def test_dry_run_keeps_everything(self):
		self._old_decline(Trip.COMPLETED)

		out = StringIO()
		call_command('cleanup_old_data', '--dry-run', stdout=out)

		self.assertIn('DRY RUN', out.getvalue())
		self.assertEqual(TripDecline.objects.count(), 1)
