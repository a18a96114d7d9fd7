from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from common.exceptions import DomainValidationError
from drivers.models import DriverProfile
from trips.tests import make_client, make_partner, make_vehicle
from vehicles.models import Vehicle, Document
from .models import User
from . import services
from .views import RegisterView, LoginView, ProfileView, PartnerListView, PartnerVerificationView

PARTNER_SIGNUP = {
	'email': 'amine@example.com',
	'password': 'secret-pass-123',
	'user_type': 'partner',
	'first_name': 'Amine',
	'last_name': 'Trabelsi',
	'phone_number': '+21620000000',
	'cin': '09876543',
	'vehicle': {
		'brand': 'Kia',
		'model': 'Carnival',
		'year': '2021',
		'license_plate': '200 TU 1234',
		'capacity': 7,
		'price_per_km': '1.50',
		'base_fare': '12.00',
		'category': 'van',
	},
	'documents': [
		{'type': 'cin_front', 'file': 'onboarding/cin-front.jpg'},
		{'type': 'vehicle_insurance', 'file': 'onboarding/insurance.pdf', 'for_vehicle': True},
	],
}


class RegistrationTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def _register(self, data):
		request = self.factory.post('/api/auth/register/', data, format='json')
		return RegisterView.as_view()(request)

	def test_client_is_verified_immediately(self):
		response = self._register({
			'email': 'leila@example.com',
			'password': 'secret-pass-123',
			'user_type': 'client',
			'first_name': 'Leila',
		})

		self.assertEqual(response.status_code, 201)
		self.assertIn('access', response.data['tokens'])
		user = User.objects.get(email='leila@example.com')
		self.assertTrue(user.is_verified)
		self.assertEqual(user.username, 'leila@example.com')
		self.assertIsNone(user.rating)

	def test_partner_onboarding_creates_profile_vehicle_and_documents(self):
		response = self._register(PARTNER_SIGNUP)

		self.assertEqual(response.status_code, 201)
		partner = User.objects.get(email='amine@example.com')
		self.assertFalse(partner.is_verified)
		self.assertEqual(partner.verification_status, User.VERIFICATION_PENDING)
		self.assertTrue(DriverProfile.objects.filter(user=partner).exists())

		vehicle = Vehicle.objects.get(owner=partner)
		self.assertEqual(vehicle.license_plate, '200 TU 1234')
		self.assertEqual(vehicle.status, Vehicle.INACTIVE)

		documents = {d.type: d for d in Document.objects.filter(owner=partner)}
		self.assertEqual(set(documents), {'cin_front', 'vehicle_insurance'})
		self.assertIsNone(documents['cin_front'].vehicle_id)
		self.assertEqual(documents['vehicle_insurance'].vehicle_id, vehicle.id)

	def test_failed_onboarding_persists_nothing(self):
		make_vehicle(make_partner('existing'))
		Vehicle.objects.update(license_plate='200 TU 1234')

		response = self._register(PARTNER_SIGNUP)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'duplicate_license_plate')
		self.assertFalse(User.objects.filter(email='amine@example.com').exists())
		self.assertEqual(DriverProfile.objects.count(), 1)
		self.assertFalse(Document.objects.exists())

	def test_clients_cannot_register_vehicles(self):
		data = dict(PARTNER_SIGNUP, user_type='client')

		response = self._register(data)

		self.assertEqual(response.status_code, 400)
		self.assertFalse(User.objects.exists())

	def test_duplicate_email(self):
		make_client('taken')

		with self.assertRaises(DomainValidationError) as ctx:
			services.create_user(password='x', user_type='client', username='other', email='TAKEN@example.com')
		self.assertEqual(ctx.exception.error_code, 'duplicate_email')

	def test_login(self):
		self._register(PARTNER_SIGNUP)

		request = self.factory.post(
			'/api/auth/login/', {'username': 'amine@example.com', 'password': 'secret-pass-123'}, format='json'
		)
		response = LoginView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['user']['user_type'], 'partner')

		request = self.factory.post(
			'/api/auth/login/', {'username': 'amine@example.com', 'password': 'wrong'}, format='json'
		)
		self.assertEqual(LoginView.as_view()(request).status_code, 400)


class ProfileTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def _patch(self, user, data):
		request = self.factory.patch('/api/auth/profile/', data, format='json')
		force_authenticate(request, user=user)
		return ProfileView.as_view()(request)

	def test_client_profile_update(self):
		client = make_client()

		response = self._patch(client, {'phone_number': '+21655555555'})

		self.assertEqual(response.status_code, 200)
		client.refresh_from_db()
		self.assertEqual(client.phone_number, '+21655555555')
		self.assertTrue(client.is_verified)

	def test_partner_change_requires_new_review(self):
		partner = make_partner()

		response = self._patch(partner, {'address': '12 Rue de Marseille', 'rating': 1.0})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['verification_status'], 'pending')
		partner.refresh_from_db()
		self.assertFalse(partner.is_verified)
		self.assertEqual(partner.address, '12 Rue de Marseille')
		# Read-only fields are ignored
		self.assertIsNone(partner.rating)


class PartnerAdminTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.admin = User.objects.create_user(
			username='admin', email='admin@example.com', password='x', user_type='client', is_staff=True
		)

	def test_list_and_filter_partners(self):
		make_partner('approved')
		make_partner('waiting', verified=False)

		request = self.factory.get('/api/accounts/partners/', {'verification_status': 'pending'})
		force_authenticate(request, user=self.admin)
		response = PartnerListView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual([p['username'] for p in response.data['partners']], ['waiting'])

	def test_approve_partner(self):
		partner = make_partner('waiting', verified=False)

		request = self.factory.post('/api/accounts/partners/%d/verification/' % partner.id, {'status': 'approved'}, format='json')
		force_authenticate(request, user=self.admin)
		response = PartnerVerificationView.as_view()(request, partner_id=partner.id)

		self.assertEqual(response.status_code, 200)
		partner.refresh_from_db()
		self.assertTrue(partner.is_verified)
		self.assertEqual(partner.verification_status, User.VERIFICATION_APPROVED)

	def test_verification_requires_admin(self):
		partner = make_partner('waiting', verified=False)

		request = self.factory.post('/api/accounts/partners/%d/verification/' % partner.id, {'status': 'approved'}, format='json')
		force_authenticate(request, user=partner)
		response = PartnerVerificationView.as_view()(request, partner_id=partner.id)

		self.assertEqual(response.status_code, 403)

	def test_unknown_partner(self):
		client = make_client()

		request = self.factory.post('/api/accounts/partners/%d/verification/' % client.id, {'status': 'rejected'}, format='json')
		force_authenticate(request, user=self.admin)
		response = PartnerVerificationView.as_view()(request, partner_id=client.id)

		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'partner_not_found')
