from decimal import Decimal
from types import SimpleNamespace

from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError
from django.test import TestCase, override_settings
from rest_framework.test import APIRequestFactory, force_authenticate
from unittest.mock import patch

from common.exceptions import UpstreamUnavailableError
from services.matching import (
	find_available_drivers,
	get_estimator,
	DistanceEstimator,
	SimulatedDistanceEstimator,
	HaversineDistanceEstimator,
)
from services.matching.estimators import Estimate
from trips.models import Trip
from trips.tests import make_client, make_partner, make_vehicle, make_trip
from .models import DriverProfile
from .views import (
	DriverStatusView,
	DriverLocationUpdateView,
	DriverTripRequestsView,
	DriverEarningsView,
	DriverTripHistoryView,
)

LAT, LON = 36.8, 10.18


class FixedEstimator(DistanceEstimator):
	"""Same distance for everyone unless overridden per partner id."""
	name = 'fixed'

	def __init__(self, default=2.3, distances=None, status='available'):
		self.default = default
		self.distances = distances or {}
		self.status = status

	def estimate(self, partner, latitude, longitude):
		return Estimate(distance_km=self.distances.get(partner.pk, self.default), status=self.status)


class AvailabilityMatcherTests(TestCase):
	def test_min_capacity_filters_vehicles(self):
		for i, capacity in enumerate([2, 4, 4, 7]):
			make_vehicle(make_partner('partner%d' % i), capacity=capacity)

		candidates = find_available_drivers(LAT, LON, min_capacity=4, estimator=FixedEstimator())

		self.assertEqual(len(candidates), 3)
		self.assertEqual(sorted(c.vehicle['capacity'] for c in candidates), [4, 4, 7])

	def test_category_filter(self):
		make_vehicle(make_partner('std'), category='standard')
		lux = make_partner('lux')
		make_vehicle(lux, category='luxury')

		candidates = find_available_drivers(LAT, LON, category='luxury', estimator=FixedEstimator())

		self.assertEqual([c.id for c in candidates], [lux.id])
		self.assertEqual(candidates[0].vehicle['type'], 'luxury')

	def test_unverified_partners_and_inactive_vehicles_are_excluded(self):
		make_vehicle(make_partner('pending', verified=False))
		make_vehicle(make_partner('parked'), status='inactive')
		ready = make_partner('ready')
		make_vehicle(ready)

		candidates = find_available_drivers(LAT, LON, estimator=FixedEstimator())

		self.assertEqual([c.id for c in candidates], [ready.id])

	def test_first_matching_vehicle_represents_partner(self):
		partner = make_partner()
		first = make_vehicle(partner, capacity=4)
		make_vehicle(partner, capacity=7)

		candidates = find_available_drivers(LAT, LON, estimator=FixedEstimator())

		self.assertEqual(len(candidates), 1)
		self.assertEqual(candidates[0].vehicle['id'], first.id)

	def test_max_distance(self):
		near = make_partner('near')
		far = make_partner('far')
		make_vehicle(near)
		make_vehicle(far)
		estimator = FixedEstimator(distances={near.id: 1.2, far.id: 8.0})

		candidates = find_available_drivers(LAT, LON, max_distance_km=5, estimator=estimator)

		self.assertEqual([c.id for c in candidates], [near.id])

	def test_eta_price_and_rating(self):
		rated = make_partner('rated', rating=4.0)
		make_vehicle(rated, base_fare='25.50')
		fresh = make_partner('fresh')
		make_vehicle(fresh, base_fare='10.00')

		candidates = find_available_drivers(LAT, LON, estimator=FixedEstimator(default=2.25))
		by_id = {c.id: c for c in candidates}

		# 2.25 km at 30 km/h = 4.5 min, rounded half up
		self.assertEqual(by_id[rated.id].eta_minutes, 5)
		self.assertEqual(by_id[rated.id].price_range, {'min': 26, 'max': 38})
		self.assertEqual(by_id[rated.id].rating, 4.0)
		self.assertEqual(by_id[fresh.id].price_range, {'min': 10, 'max': 15})
		self.assertEqual(by_id[fresh.id].rating, 4.5)

	def test_results_in_partner_order_and_deterministic(self):
		partners = [make_partner('p%d' % i) for i in range(4)]
		for partner in partners:
			make_vehicle(partner)

		first = find_available_drivers(LAT, LON)
		second = find_available_drivers(LAT, LON)

		self.assertEqual([c.id for c in first], [p.id for p in partners])
		self.assertEqual(first, second)

	def test_empty_result_is_not_an_error(self):
		self.assertEqual(find_available_drivers(LAT, LON), [])

	@override_settings(MATCHER_MAX_CANDIDATES=2)
	def test_candidate_cap(self):
		for i in range(4):
			make_vehicle(make_partner('cap%d' % i))

		with self.assertLogs('services.matching.availability', level='WARNING'):
			candidates = find_available_drivers(LAT, LON, estimator=FixedEstimator())

		self.assertEqual(len(candidates), 2)

	@override_settings(MATCHER_TIME_BUDGET_SECONDS=-1)
	def test_time_budget_returns_partial_list(self):
		make_vehicle(make_partner())

		with self.assertLogs('services.matching.availability', level='WARNING'):
			candidates = find_available_drivers(LAT, LON, estimator=FixedEstimator())

		self.assertEqual(candidates, [])

	@patch('services.matching.availability._first_vehicle_per_owner', side_effect=DatabaseError('down'))
	def test_lookup_failure_is_upstream_unavailable(self, mock_lookup):
		with self.assertRaises(UpstreamUnavailableError):
			find_available_drivers(LAT, LON)


class DistanceEstimatorTests(TestCase):
	def test_simulated_estimator_derives_from_partner_id(self):
		estimator = SimulatedDistanceEstimator()

		# "5" -> 53: 0.5 + 8 / 10
		five = estimator.estimate(SimpleNamespace(pk=5), LAT, LON)
		self.assertAlmostEqual(five.distance_km, 1.3)
		self.assertEqual(five.status, 'available')

		# "7" -> 55: divisible by 5
		seven = estimator.estimate(SimpleNamespace(pk=7), LAT, LON)
		self.assertAlmostEqual(seven.distance_km, 1.5)
		self.assertEqual(seven.status, 'finishing_soon')

		# Pickup point does not matter
		self.assertEqual(estimator.estimate(SimpleNamespace(pk=5), 0, 0), five)

	def test_haversine_uses_driver_position(self):
		near = make_partner('near')
		make_vehicle(near)
		DriverProfile.objects.filter(user=near).update(
			status='busy', current_latitude=Decimal('36.809000'), current_longitude=Decimal('10.180000')
		)
		offline = make_partner('offline')
		make_vehicle(offline)
		DriverProfile.objects.filter(user=offline).update(
			status='offline', current_latitude=Decimal('36.800000'), current_longitude=Decimal('10.180000')
		)
		unknown = make_partner('unknown')
		make_vehicle(unknown)

		candidates = find_available_drivers(LAT, LON, estimator=get_estimator('haversine'))

		self.assertEqual([c.id for c in candidates], [near.id])
		self.assertAlmostEqual(candidates[0].distance_km, 1.0, places=1)
		self.assertEqual(candidates[0].status, 'finishing_soon')
		self.assertEqual(candidates[0].eta_minutes, 2)

	def test_estimator_selection(self):
		self.assertIsInstance(get_estimator(), SimulatedDistanceEstimator)
		self.assertIsInstance(get_estimator('haversine'), HaversineDistanceEstimator)
		with self.assertRaises(ImproperlyConfigured):
			get_estimator('teleport')


class DriverViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.partner = make_partner()
		self.vehicle = make_vehicle(self.partner)
		self.client_user = make_client()

	def _call(self, view_cls, method, user, data=None, **query):
		build = getattr(self.factory, method)
		if method == 'get':
			request = build('/api/driver/', query)
		else:
			request = build('/api/driver/', data or {}, format='json')
		force_authenticate(request, user=user)
		return view_cls.as_view()(request)

	def test_status_update(self):
		response = self._call(DriverStatusView, 'put', self.partner, {'status': 'offline'})

		self.assertEqual(response.status_code, 200)
		self.partner.driver_profile.refresh_from_db()
		self.assertEqual(self.partner.driver_profile.status, 'offline')

		# busy is owned by the trip lifecycle
		response = self._call(DriverStatusView, 'put', self.partner, {'status': 'busy'})
		self.assertEqual(response.status_code, 400)

	def test_location_update(self):
		response = self._call(DriverLocationUpdateView, 'post', self.partner, {'latitude': '36.81', 'longitude': '10.17'})

		self.assertEqual(response.status_code, 200)
		self.partner.driver_profile.refresh_from_db()
		self.assertEqual(self.partner.driver_profile.current_latitude, Decimal('36.810000'))

	def test_clients_are_rejected(self):
		response = self._call(DriverStatusView, 'get', self.client_user)
		self.assertEqual(response.status_code, 403)

	def test_trip_requests(self):
		trip = make_trip(self.client_user)

		response = self._call(DriverTripRequestsView, 'get', self.partner)
		self.assertEqual(response.status_code, 200)
		self.assertEqual([t['id'] for t in response.data['trips']], [trip.id])

		pending = make_partner('pending', verified=False)
		make_vehicle(pending)
		response = self._call(DriverTripRequestsView, 'get', pending)
		self.assertEqual(response.data['count'], 0)

	def test_history_and_earnings(self):
		make_trip(
			self.client_user, status=Trip.COMPLETED, partner=self.partner, vehicle=self.vehicle,
			pricing={'base_fare': 10, 'distance_fare': 8, 'taxes': 2, 'total': 20, 'currency': 'TND'},
		)
		make_trip(self.client_user, status=Trip.CANCELLED, partner=self.partner, vehicle=self.vehicle)

		response = self._call(DriverTripHistoryView, 'get', self.partner, status='completed')
		self.assertEqual(response.data['count'], 1)

		response = self._call(DriverTripHistoryView, 'get', self.partner, status='completed,cancelled')
		self.assertEqual(response.data['count'], 2)

		response = self._call(DriverEarningsView, 'get', self.partner)
		self.assertEqual(response.data['total_earnings'], '20')
		self.assertEqual(response.data['completed_trips'], 1)
