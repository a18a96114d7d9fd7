from datetime import date, timedelta

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from common.exceptions import DomainValidationError, InvalidStateError, UnauthorizedError
from trips.models import Trip
from trips.tests import make_client, make_partner, make_vehicle, make_trip
from .models import Vehicle, Document
from . import services
from .tasks import expire_documents_task
from .views import VehicleListCreateView, VehicleDetailView, FileUploadView, DocumentListCreateView

VEHICLE_FIELDS = {
	'brand': 'Peugeot',
	'model': '508',
	'year': '2022',
	'license_plate': 'tn-123-abc',
	'capacity': 4,
	'price_per_km': '1.20',
	'base_fare': '8.00',
}


class VehicleServiceTests(TestCase):
	def setUp(self):
		self.partner = make_partner()

	def test_registered_vehicle_starts_inactive_with_normalized_plate(self):
		vehicle = services.register_vehicle(self.partner, status='active', **VEHICLE_FIELDS)

		self.assertEqual(vehicle.status, Vehicle.INACTIVE)
		self.assertEqual(vehicle.license_plate, 'TN-123-ABC')
		self.assertEqual(vehicle.owner, self.partner)

	def test_duplicate_plate_is_rejected_case_insensitively(self):
		services.register_vehicle(self.partner, **VEHICLE_FIELDS)

		with self.assertRaises(DomainValidationError) as ctx:
			services.register_vehicle(make_partner('second'), **dict(VEHICLE_FIELDS, license_plate='TN-123-abc'))
		self.assertEqual(ctx.exception.error_code, 'duplicate_license_plate')

	def test_clients_cannot_own_vehicles(self):
		with self.assertRaises(DomainValidationError) as ctx:
			services.register_vehicle(make_client(), **VEHICLE_FIELDS)
		self.assertEqual(ctx.exception.error_code, 'invalid_owner')

	def test_only_admins_activate(self):
		vehicle = services.register_vehicle(self.partner, **VEHICLE_FIELDS)

		with self.assertRaises(UnauthorizedError):
			services.update_vehicle(vehicle.id, self.partner, status='active')

		services.update_vehicle(vehicle.id, self.partner, status='maintenance', color='Grey')
		vehicle.refresh_from_db()
		self.assertEqual(vehicle.status, Vehicle.MAINTENANCE)
		self.assertEqual(vehicle.color, 'Grey')

		with self.assertRaises(UnauthorizedError):
			services.update_vehicle(vehicle.id, make_partner('stranger'), color='Red')

		services.set_vehicle_status(vehicle.id, 'active')
		vehicle.refresh_from_db()
		self.assertEqual(vehicle.status, Vehicle.ACTIVE)

	def test_vehicle_on_an_ongoing_trip_stays_active(self):
		vehicle = make_vehicle(self.partner)
		trip = make_trip(make_client(), status=Trip.ACCEPTED, partner=self.partner, vehicle=vehicle)

		with self.assertRaises(InvalidStateError) as ctx:
			services.update_vehicle(vehicle.id, self.partner, status='maintenance')
		self.assertEqual(ctx.exception.error_code, 'vehicle_in_use')
		with self.assertRaises(InvalidStateError):
			services.set_vehicle_status(vehicle.id, 'inactive')

		vehicle.refresh_from_db()
		self.assertEqual(vehicle.status, Vehicle.ACTIVE)

		# Other edits are still allowed mid-trip
		services.update_vehicle(vehicle.id, self.partner, color='Blue')

		Trip.objects.filter(pk=trip.pk).update(status=Trip.COMPLETED)
		services.update_vehicle(vehicle.id, self.partner, status='maintenance')
		vehicle.refresh_from_db()
		self.assertEqual(vehicle.status, Vehicle.MAINTENANCE)

	def test_featured_vehicles(self):
		active = make_vehicle(self.partner)
		parked = make_vehicle(self.partner, status='inactive')

		# No featured vehicles yet: fall back to active ones
		self.assertEqual(services.get_featured_vehicles(), [active])

		with self.assertRaises(InvalidStateError):
			services.toggle_featured(parked.id, True)

		services.toggle_featured(active.id, True)
		self.assertEqual(services.get_featured_vehicles(), [active])

		# Taking it out of service drops the flag
		services.set_vehicle_status(active.id, 'maintenance')
		active.refresh_from_db()
		self.assertFalse(active.featured)


class DocumentServiceTests(TestCase):
	def setUp(self):
		self.partner = make_partner()

	def test_upload_replaces_previous_document_of_same_type(self):
		first = services.upload_document(self.partner, 'driver_license', 'onboarding/license-v1.pdf')
		services.verify_document(first.id, True)

		second = services.upload_document(
			self.partner, 'driver_license', 'onboarding/license-v2.pdf', expiry_date=date(2030, 1, 1)
		)

		self.assertEqual(first.id, second.id)
		self.assertEqual(Document.objects.filter(owner=self.partner).count(), 1)
		self.assertFalse(second.is_verified)
		self.assertEqual(second.file.name, 'onboarding/license-v2.pdf')

	def test_vehicle_document_must_belong_to_uploader(self):
		vehicle = make_vehicle(make_partner('other'))

		with self.assertRaises(UnauthorizedError):
			services.upload_document(self.partner, 'vehicle_insurance', 'onboarding/ins.pdf', vehicle_id=vehicle.id)

	def test_unknown_type(self):
		with self.assertRaises(DomainValidationError):
			services.upload_document(self.partner, 'passport', 'onboarding/p.pdf')

	def test_expiry_sweep(self):
		today = date(2025, 6, 1)
		old = services.upload_document(self.partner, 'cin_front', 'a.pdf', expiry_date=today - timedelta(days=1))
		fresh = services.upload_document(self.partner, 'cin_back', 'b.pdf', expiry_date=today + timedelta(days=30))
		open_ended = services.upload_document(self.partner, 'other', 'c.pdf')

		self.assertEqual(services.expire_documents(today=today), 1)

		old.refresh_from_db()
		fresh.refresh_from_db()
		open_ended.refresh_from_db()
		self.assertEqual(old.status, Document.EXPIRED)
		self.assertEqual(fresh.status, Document.VALID)
		self.assertEqual(open_ended.status, Document.VALID)

	def test_expiry_task(self):
		services.upload_document(self.partner, 'cin_front', 'a.pdf', expiry_date=date(2000, 1, 1))

		self.assertEqual(expire_documents_task(), 1)


class VehicleViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.partner = make_partner()

	def test_partner_registers_and_lists_vehicles(self):
		request = self.factory.post('/api/vehicles/', VEHICLE_FIELDS, format='json')
		force_authenticate(request, user=self.partner)
		response = VehicleListCreateView.as_view()(request)

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['status'], 'inactive')
		self.assertEqual(response.data['display_name'], 'Peugeot 508')

		request = self.factory.get('/api/vehicles/')
		force_authenticate(request, user=self.partner)
		response = VehicleListCreateView.as_view()(request)
		self.assertEqual(response.data['count'], 1)

	def test_duplicate_plate_returns_bad_request(self):
		make_vehicle(self.partner)
		Vehicle.objects.filter(owner=self.partner).update(license_plate='TN-123-ABC')

		request = self.factory.post('/api/vehicles/', VEHICLE_FIELDS, format='json')
		force_authenticate(request, user=self.partner)
		response = VehicleListCreateView.as_view()(request)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'duplicate_license_plate')

	def test_missing_vehicle_is_not_found(self):
		request = self.factory.get('/api/vehicles/424242/')
		force_authenticate(request, user=self.partner)
		response = VehicleDetailView.as_view()(request, vehicle_id=424242)

		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'vehicle_not_found')

	def test_upload_then_attach_document(self):
		upload = SimpleUploadedFile('license.pdf', b'%PDF-1.4 test', content_type='application/pdf')
		request = self.factory.post('/api/vehicles/documents/upload/', {'file': upload}, format='multipart')
		response = FileUploadView.as_view()(request)

		self.assertEqual(response.status_code, 201)
		ref = response.data['file']
		self.assertTrue(ref.startswith('onboarding/'))

		request = self.factory.post(
			'/api/vehicles/documents/', {'type': 'driver_license', 'file_ref': ref}, format='json'
		)
		force_authenticate(request, user=self.partner)
		response = DocumentListCreateView.as_view()(request)

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['type'], 'driver_license')
		self.assertFalse(response.data['is_verified'])
		self.assertIn(ref, response.data['file_url'])
