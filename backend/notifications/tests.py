from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate
from unittest.mock import patch

from common.exceptions import DomainValidationError, NotFoundError, UnauthorizedError
from realtime.consumers import NotificationConsumer
from realtime.notifications import push_user_event, user_group
from trips.tests import make_client, make_partner
from .models import Notification
from . import services
from .views import NotificationListView, UnreadCountView, MarkReadView, MarkAllReadView, NotificationDeleteView


class NotificationServiceTests(TestCase):
	def setUp(self):
		self.user = make_client()

	def test_unknown_type_is_rejected(self):
		with self.assertRaises(DomainValidationError):
			services.create_notification(self.user.id, 'promo', 'Hello', 'Hi')
		self.assertFalse(Notification.objects.exists())

	@patch('realtime.notifications.push_user_event')
	def test_push_happens_after_commit(self, mock_push):
		with self.captureOnCommitCallbacks(execute=True) as callbacks:
			notification = services.create_notification(self.user.id, 'trip', 'Trip accepted', 'On the way', related_id=42)
			mock_push.assert_not_called()

		self.assertEqual(len(callbacks), 1)
		mock_push.assert_called_once()
		user_id, event_type, payload = mock_push.call_args.args
		self.assertEqual((user_id, event_type), (self.user.id, 'notification'))
		self.assertEqual(payload['id'], notification.id)
		self.assertEqual(payload['related_id'], '42')

	def test_mark_read_checks_ownership(self):
		notification = services.create_notification(self.user.id, 'system', 'Welcome', 'Hello')

		with self.assertRaises(UnauthorizedError):
			services.mark_read(notification.id, make_partner())
		with self.assertRaises(NotFoundError):
			services.mark_read(notification.id + 100, self.user)

		services.mark_read(notification.id, self.user)
		self.assertEqual(services.count_unread(self.user), 0)

	def test_mark_all_read_and_delete(self):
		first = services.create_notification(self.user.id, 'system', 'One', '1')
		services.create_notification(self.user.id, 'system', 'Two', '2')
		services.mark_read(first.id, self.user)

		self.assertEqual(services.mark_all_read(self.user), 1)
		self.assertEqual(services.count_unread(self.user), 0)

		services.delete_notification(first.id, self.user)
		self.assertEqual(len(services.get_user_notifications(self.user)), 1)


class NotificationViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.user = make_client()
		self.old = services.create_notification(self.user.id, 'system', 'Old', 'Read me')
		services.mark_read(self.old.id, self.user)
		self.new = services.create_notification(self.user.id, 'trip', 'New', 'Unread')

	def _call(self, view_cls, method='get', user=None, query=None, **kwargs):
		request = getattr(self.factory, method)('/api/notifications/', query or {})
		force_authenticate(request, user=user or self.user)
		return view_cls.as_view()(request, **kwargs)

	def test_list_newest_first(self):
		response = self._call(NotificationListView)
		self.assertEqual([n['id'] for n in response.data['notifications']], [self.new.id, self.old.id])

		response = self._call(NotificationListView, query={'unread_only': 'true'})
		self.assertEqual(response.data['count'], 1)

	def test_limit_must_be_a_positive_integer(self):
		response = self._call(NotificationListView, query={'limit': '1'})
		self.assertEqual(response.data['count'], 1)

		for limit in ('many', '-5'):
			response = self._call(NotificationListView, query={'limit': limit})
			self.assertEqual(response.status_code, 400)
			self.assertEqual(response.data['error'], 'invalid_limit')

	def test_unread_count_and_mark_all(self):
		self.assertEqual(self._call(UnreadCountView).data['unread'], 1)

		response = self._call(MarkAllReadView, 'post')
		self.assertEqual(response.data['updated'], 1)

	def test_mark_read_of_foreign_notification(self):
		response = self._call(MarkReadView, 'post', user=make_client('other'), notification_id=self.new.id)

		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['success'], False)

	def test_delete(self):
		response = self._call(NotificationDeleteView, 'delete', notification_id=self.old.id)

		self.assertEqual(response.status_code, 204)
		self.assertFalse(Notification.objects.filter(pk=self.old.id).exists())


class RealtimePushTests(TestCase):
	def test_push_failure_is_reported_not_raised(self):
		layer = get_channel_layer()
		with patch.object(layer, 'group_send', side_effect=ConnectionError('redis down')):
			with self.assertLogs('realtime.notifications', level='ERROR'):
				self.assertFalse(push_user_event(7, 'notification', {'title': 'x'}))

	def test_push_without_user(self):
		self.assertFalse(push_user_event(None, 'notification'))

	async def test_consumer_receives_pushed_notification(self):
		user = await self._make_user()
		communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), '/ws/notifications/')
		communicator.scope['user'] = user

		connected, _ = await communicator.connect()
		self.assertTrue(connected)
		hello = await communicator.receive_json_from()
		self.assertEqual(hello['type'], 'connection_established')
		self.assertEqual(hello['unread'], 0)

		await communicator.send_json_to({'type': 'ping'})
		self.assertEqual(await communicator.receive_json_from(), {'type': 'pong'})

		await get_channel_layer().group_send(user_group(user.id), {'type': 'notification', 'id': 1, 'title': 'Trip accepted'})
		pushed = await communicator.receive_json_from()
		self.assertEqual(pushed, {'type': 'notification', 'id': 1, 'title': 'Trip accepted'})

		await communicator.disconnect()

	async def test_anonymous_socket_is_closed(self):
		from django.contrib.auth.models import AnonymousUser

		communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), '/ws/notifications/')
		communicator.scope['user'] = AnonymousUser()

		connected, _ = await communicator.connect()
		self.assertFalse(connected)

	@staticmethod
	async def _make_user():
		from channels.db import database_sync_to_async
		return await database_sync_to_async(make_client)('socket-user')
