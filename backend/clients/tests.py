from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate
from unittest.mock import patch

from services.matching import DriverCandidate
from trips.models import Trip
from trips.tests import make_client, make_partner, make_vehicle, make_trip
from .serializers import PLACEHOLDER_PHOTO
from .views.info import ClientAvailableDriversView, ClientTripHistoryView, ClientProfileView
from .views.trips import ClientCreateTripView, ClientCurrentTripView, ClientCancelTripView

TRIP_BODY = {
	'pickup': {'address': 'Tunis Marine', 'latitude': 36.8, 'longitude': 10.19},
	'dropoff': {'address': 'Sidi Bou Said', 'latitude': 36.87, 'longitude': 10.34},
	'trip_details': {'passengers': 2, 'luggage': 1},
}


class ClientTripTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.client_user = make_client()
		self.partner = make_partner()
		self.vehicle = make_vehicle(self.partner)

	def _post(self, view, data=None, user=None, **kwargs):
		request = self.factory.post('/api/client/', data or {}, format='json')
		force_authenticate(request, user=user or self.client_user)
		return view.as_view()(request, **kwargs)

	def _get(self, view, user=None, **query):
		request = self.factory.get('/api/client/', query)
		force_authenticate(request, user=user or self.client_user)
		return view.as_view()(request)

	def test_create_immediate_trip(self):
		response = self._post(ClientCreateTripView, TRIP_BODY)

		self.assertEqual(response.status_code, 201)
		trip = response.data['trip']
		self.assertEqual(trip['status'], 'waiting_approval')
		self.assertEqual(trip['ui_status'], 'searching')
		self.assertEqual(trip['trip_details']['passengers'], 2)
		self.assertFalse(trip['timing']['is_scheduled'])
		self.assertIsNone(trip['partner'])

	def test_create_scheduled_trip(self):
		body = dict(TRIP_BODY, timing={
			'is_scheduled': True,
			'departure_at': (timezone.now() + timedelta(hours=2)).isoformat(),
		})

		response = self._post(ClientCreateTripView, body)

		self.assertEqual(response.status_code, 201)
		self.assertTrue(Trip.objects.get(pk=response.data['trip']['id']).is_scheduled)

	def test_scheduled_trip_without_departure_is_rejected(self):
		body = dict(TRIP_BODY, timing={'is_scheduled': True})

		response = self._post(ClientCreateTripView, body)

		self.assertEqual(response.status_code, 400)
		self.assertFalse(Trip.objects.exists())

	def test_partners_cannot_request_trips(self):
		response = self._post(ClientCreateTripView, TRIP_BODY, user=self.partner)
		self.assertEqual(response.status_code, 403)

	def test_current_trip(self):
		response = self._get(ClientCurrentTripView)
		self.assertFalse(response.data['has_active_trip'])

		trip = make_trip(self.client_user, status=Trip.DRIVER_ON_THE_WAY, partner=self.partner, vehicle=self.vehicle)
		response = self._get(ClientCurrentTripView)

		self.assertTrue(response.data['has_active_trip'])
		self.assertTrue(response.data['driver_assigned'])
		self.assertEqual(response.data['trip']['id'], trip.id)
		self.assertEqual(response.data['trip']['vehicle']['id'], self.vehicle.id)

	def test_cancel_trip(self):
		trip = make_trip(self.client_user)

		response = self._post(ClientCancelTripView, {'reason': 'Found a ride'}, trip_id=trip.id)

		self.assertEqual(response.status_code, 200)
		self.assertFalse(response.data['was_assigned'])
		trip.refresh_from_db()
		self.assertEqual(trip.status, Trip.CANCELLED)
		self.assertEqual(trip.cancelled_by, 'client')

	def test_cannot_cancel_someone_elses_trip(self):
		trip = make_trip(make_client('other'))

		response = self._post(ClientCancelTripView, {}, trip_id=trip.id)

		self.assertEqual(response.status_code, 403)

	def test_history_defaults_to_finished_trips(self):
		make_trip(self.client_user, status=Trip.COMPLETED)
		make_trip(self.client_user, status=Trip.CANCELLED)
		make_trip(self.client_user)

		response = self._get(ClientTripHistoryView)
		self.assertEqual(response.data['count'], 2)

		response = self._get(ClientTripHistoryView, status='searching')
		self.assertEqual(response.data['count'], 1)

		response = self._get(ClientTripHistoryView, status='lost')
		self.assertEqual(response.status_code, 400)

	def test_profile_counts_trips(self):
		make_trip(self.client_user)
		make_trip(self.client_user, status=Trip.COMPLETED)

		response = self._get(ClientProfileView)

		self.assertEqual(response.data['total_trips'], 2)
		self.assertEqual(response.data['active_trips'], 1)


class AvailableDriversViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.client_user = make_client()

	def _post(self, data):
		request = self.factory.post('/api/client/available-drivers/', data, format='json')
		force_authenticate(request, user=self.client_user)
		return ClientAvailableDriversView.as_view()(request)

	@patch('clients.services.info_services.find_available_drivers')
	def test_candidates_rendered_with_display_strings(self, mock_find):
		mock_find.return_value = [
			DriverCandidate(
				id=7,
				name='Sami Ben Ali',
				photo=None,
				vehicle={'id': 3, 'model': 'Toyota Corolla', 'type': 'standard', 'image': None, 'capacity': 4},
				rating=4.5,
				distance_km=2.34,
				eta_minutes=5,
				price_range={'min': 10, 'max': 15},
				status='available',
			)
		]

		response = self._post({'latitude': 36.8, 'longitude': 10.18, 'min_capacity': 3})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 1)
		driver = response.data['drivers'][0]
		self.assertEqual(driver['distance'], '2.3 km')
		self.assertEqual(driver['eta'], '5 min')
		self.assertEqual(driver['photo'], PLACEHOLDER_PHOTO)
		self.assertEqual(driver['price_range'], {'min': 10, 'max': 15})
		self.assertEqual(mock_find.call_args.kwargs['min_capacity'], 3)

	def test_real_matcher_through_view(self):
		for i in range(3):
			make_vehicle(make_partner('driver%d' % i), capacity=4)

		response = self._post({'latitude': 36.8, 'longitude': 10.18, 'category': 'standard'})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 3)
		for driver in response.data['drivers']:
			self.assertTrue(0.5 <= driver['distance_km'] < 5.0)
			self.assertIn(driver['status'], ('available', 'finishing_soon'))

	def test_invalid_coordinates(self):
		response = self._post({'latitude': 123, 'longitude': 10})
		self.assertEqual(response.status_code, 400)
