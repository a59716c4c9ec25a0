from datetime import timedelta
from unittest import mock

import requests
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from bookings.services import BookingLifecycle
from payments.models import Payment
from payments.services import PaymentGatewayService
from payments.tasks import close_abandoned_payments
from utils.exceptions import InvalidTransition, PaymentFailed, PaymentNotFound
from .factories import book, make_spot, make_user


class PaymentFlowTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.owner = make_user('owner', role='owner')
        self.user = make_user('driver')
        self.spot = make_spot(self.owner, total_spots=1, price='50.00')
        self.booking = book(self.user, self.spot, hours=2)

    def initiate(self, method='esewa'):
        self.client.force_authenticate(user=self.user)
        return self.client.post('/api/v1/payments/initiate/', {
            'booking_id': self.booking.id,
            'payment_method': method,
        }, format='json')

    def callback(self, correlation_id, outcome='success', **extra):
        return self.client.post('/webhooks/payments/callback/', {
            'correlation_id': correlation_id,
            'status': outcome,
            **extra
        }, format='json')

    def available(self):
        self.spot.refresh_from_db()
        return self.spot.available_spots

    def test_initiate_in_mock_mode(self):
        response = self.initiate()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['redirect']['mode'], 'mock')
        payment = Payment.objects.get(correlation_id=response.data['correlation_id'])
        self.assertEqual(payment.status, 'initiated')
        self.assertEqual(str(payment.amount), '100.00')

    def test_only_booking_user_can_pay(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.post('/api/v1/payments/initiate/', {
            'booking_id': self.booking.id,
            'payment_method': 'esewa',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cannot_pay_cancelled_booking(self):
        BookingLifecycle.cancel_booking(self.booking.id)

        response = self.initiate()

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(Payment.objects.exists())

    def test_successful_callback_confirms_booking(self):
        correlation_id = self.initiate().data['correlation_id']

        response = self.callback(correlation_id, transaction_ref='ESEWA777')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['payment_status'], 'succeeded')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'CONFIRMED')
        self.assertEqual(self.booking.transaction_ref, 'ESEWA777')
        self.assertEqual(self.booking.payment_method, 'esewa')
        self.assertEqual(self.available(), 0)

    def test_failed_callback_releases_spot(self):
        correlation_id = self.initiate().data['correlation_id']

        response = self.callback(correlation_id, 'failed', reason='User cancelled')

        self.assertEqual(response.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, 'expired')
        self.assertEqual(self.booking.payment_status, 'failed')
        self.assertEqual(self.available(), 1)

    def test_repeated_callbacks_apply_once(self):
        correlation_id = self.initiate().data['correlation_id']

        self.callback(correlation_id, 'failed')
        self.callback(correlation_id, 'failed')
        late_success = self.callback(correlation_id, 'success', transaction_ref='LATE')

        self.assertEqual(late_success.json()['payment_status'], 'failed')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'EXPIRED')
        self.assertEqual(self.available(), 1)

    def test_success_after_expiry_needs_refund(self):
        correlation_id = self.initiate().data['correlation_id']
        BookingLifecycle.expire_unpaid_booking(self.booking.id, now=timezone.now() + timedelta(minutes=11))

        response = self.callback(correlation_id, transaction_ref='ESEWA777')

        self.assertEqual(response.json()['payment_status'], 'refund_pending')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'EXPIRED')
        self.assertEqual(self.available(), 1)

    def test_second_attempt_paying_again_needs_refund(self):
        first = self.initiate().data['correlation_id']
        second = self.initiate().data['correlation_id']

        self.callback(first, transaction_ref='REF1')
        response = self.callback(second, transaction_ref='REF2')

        self.assertEqual(response.json()['payment_status'], 'refund_pending')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.transaction_ref, 'REF1')

    def test_unknown_correlation_id(self):
        response = self.callback('does-not-exist')
        self.assertEqual(response.status_code, 404)

    def test_malformed_callback(self):
        response = self.client.post('/webhooks/payments/callback/', 'not json', content_type='application/json')
        self.assertEqual(response.status_code, 400)

        response = self.callback('abc', 'maybe')
        self.assertEqual(response.status_code, 400)

    def test_payment_status(self):
        correlation_id = self.initiate().data['correlation_id']
        self.callback(correlation_id, transaction_ref='ESEWA777')

        response = self.client.get('/api/v1/payments/status/', {'booking_id': self.booking.id})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment_status'], 'paid')
        self.assertEqual(response.data['payments'][0]['status'], 'succeeded')

    def test_payment_status_hidden_from_other_users(self):
        self.client.force_authenticate(user=make_user('stranger'))

        response = self.client.get('/api/v1/payments/status/', {'booking_id': self.booking.id})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_esewa_return_success(self):
        correlation_id = self.initiate().data['correlation_id']

        response = self.client.get('/webhooks/payments/esewa/', {
            'oid': correlation_id, 'amt': '100.00', 'refId': 'ESEWA0001'
        })

        self.assertEqual(response.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.transaction_ref, 'ESEWA0001')
        self.assertEqual(self.booking.payment_status, 'paid')

    def test_esewa_return_amount_mismatch_fails_payment(self):
        correlation_id = self.initiate().data['correlation_id']

        self.client.get('/webhooks/payments/esewa/', {
            'oid': correlation_id, 'amt': '1.00', 'refId': 'ESEWA0001'
        })

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, 'failed')
        self.assertEqual(self.available(), 1)

    def test_esewa_return_failure(self):
        correlation_id = self.initiate().data['correlation_id']

        self.client.get('/webhooks/payments/esewa/', {'oid': correlation_id})

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'EXPIRED')


    def test_esewa_return_not_a_number_amount_fails_payment(self):
        for amount in ('sNaN', 'NaN', 'Infinity'):
            with self.subTest(amount=amount):
                booking = book(self.user, make_spot(self.owner, name=f'Lot {amount}', total_spots=1))
                payment, _ = PaymentGatewayService.initiate(booking, 'esewa')

                response = self.client.get('/webhooks/payments/esewa/', {
                    'oid': payment.correlation_id, 'amt': amount, 'refId': 'ESEWA0001'
                })

                self.assertEqual(response.status_code, 200)
                payment.refresh_from_db()
                self.assertEqual(payment.status, 'failed')
                booking.refresh_from_db()
                self.assertEqual(booking.state, 'EXPIRED')
                self.assertEqual(booking.spot.available_spots, 1)

    def test_esewa_return_unknown_payment(self):
        response = self.client.get('/webhooks/payments/esewa/', {
            'oid': 'missing', 'amt': '100.00', 'refId': 'ESEWA0001'
        })
        self.assertEqual(response.status_code, 404)


@override_settings(PAYMENT_GATEWAY_MODE='live', PAYMENT_CALLBACK_SECRET='s3cret')
class CallbackSecretTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = make_user('driver')
        self.spot = make_spot(make_user('owner', role='owner'), total_spots=1, price='50.00')
        self.booking = book(self.user, self.spot, hours=2)
        self.payment, _ = PaymentGatewayService.initiate(self.booking, 'esewa')

    def callback(self, **headers):
        return self.client.post('/webhooks/payments/callback/', {
            'correlation_id': self.payment.correlation_id,
            'status': 'success',
        }, format='json', **headers)

    def assertStillPending(self):
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'PENDING')
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'initiated')

    def test_callback_without_secret_rejected(self):
        response = self.callback()
        self.assertEqual(response.status_code, 403)
        self.assertStillPending()

    def test_callback_with_wrong_secret_rejected(self):
        response = self.callback(HTTP_X_CALLBACK_SECRET='guess')
        self.assertEqual(response.status_code, 403)
        self.assertStillPending()

    def test_callback_with_secret_confirms_booking(self):
        response = self.callback(HTTP_X_CALLBACK_SECRET='s3cret')

        self.assertEqual(response.status_code, 200)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'CONFIRMED')

    @override_settings(PAYMENT_CALLBACK_SECRET='')
    def test_unconfigured_secret_rejects_everything(self):
        response = self.callback(HTTP_X_CALLBACK_SECRET='')
        self.assertEqual(response.status_code, 403)
        self.assertStillPending()


@override_settings(PAYMENT_GATEWAY_MODE='live')
class EsewaVerificationTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = make_user('driver')
        self.spot = make_spot(make_user('owner', role='owner'), total_spots=1, price='50.00')
        self.booking = book(self.user, self.spot, hours=2)
        self.payment, _ = PaymentGatewayService.initiate(self.booking, 'esewa')

    def esewa_return(self):
        return self.client.get('/webhooks/payments/esewa/', {
            'oid': self.payment.correlation_id, 'amt': '100.00', 'refId': 'ESEWA0001'
        })

    @mock.patch('payments.services.requests.post')
    def test_verified_return_confirms_booking(self, mock_post):
        mock_post.return_value.text = '<response><response_code>Success</response_code></response>'

        response = self.esewa_return()

        self.assertEqual(response.status_code, 200)
        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs['data']['pid'], self.payment.correlation_id)
        self.assertEqual(kwargs['data']['rid'], 'ESEWA0001')
        self.assertEqual(kwargs['data']['amt'], '100.00')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'CONFIRMED')

    @mock.patch('payments.services.requests.post')
    def test_unverified_return_fails_payment(self, mock_post):
        mock_post.return_value.text = '<response><response_code>failure</response_code></response>'

        self.esewa_return()

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'failed')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'EXPIRED')

    @mock.patch('payments.services.requests.post')
    def test_verification_unreachable_leaves_payment_open(self, mock_post):
        mock_post.side_effect = requests.ConnectionError('connection refused')

        response = self.esewa_return()

        self.assertEqual(response.status_code, 502)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'initiated')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'PENDING')


@override_settings(PAYMENT_GATEWAY_MODE='live', KHALTI_SECRET_KEY='test-secret')
class GatewayServiceTestCase(TestCase):

    def setUp(self):
        self.user = make_user('driver')
        self.spot = make_spot(make_user('owner', role='owner'), total_spots=1, price='50.00')
        self.booking = book(self.user, self.spot, hours=2)

    def test_esewa_form_fields(self):
        payment, redirect = PaymentGatewayService.initiate(self.booking, 'esewa')

        fields = redirect['fields']
        self.assertEqual(fields['pid'], payment.correlation_id)
        self.assertEqual(fields['amt'], '100.00')
        self.assertEqual(fields['tAmt'], '100.00')
        self.assertEqual(fields['scd'], 'EPAYTEST')
        self.assertIn('su', fields)
        self.assertIn('fu', fields)

    @mock.patch('payments.services.requests.post')
    def test_khalti_initiate(self, mock_post):
        mock_post.return_value.json.return_value = {
            'pidx': 'bZQLD9wRVWo4CdESSfuSsB',
            'payment_url': 'https://test-pay.khalti.com/?pidx=bZQLD9wRVWo4CdESSfuSsB',
        }

        payment, redirect = PaymentGatewayService.initiate(self.booking, 'khalti')

        self.assertEqual(redirect['pidx'], 'bZQLD9wRVWo4CdESSfuSsB')
        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs['headers']['Authorization'], 'Key test-secret')
        self.assertEqual(kwargs['json']['amount'], 10000)
        self.assertEqual(kwargs['json']['purchase_order_id'], payment.correlation_id)

    @mock.patch('payments.services.requests.post')
    def test_khalti_unreachable(self, mock_post):
        mock_post.side_effect = requests.ConnectionError('connection refused')

        with self.assertRaises(PaymentFailed):
            PaymentGatewayService.initiate(self.booking, 'khalti')

        payment = Payment.objects.get(booking=self.booking)
        self.assertEqual(payment.status, 'failed')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, 'PENDING')

    def test_paid_booking_cannot_be_paid_again(self):
        BookingLifecycle.confirm_payment(self.booking.id, 'ESEWA1', 'esewa')
        self.booking.refresh_from_db()

        with self.assertRaises(InvalidTransition):
            PaymentGatewayService.initiate(self.booking, 'esewa')

    def test_unknown_outcome_token(self):
        with self.assertRaises(PaymentNotFound):
            PaymentGatewayService.handle_outcome('missing', True)


class AbandonedPaymentTestCase(TestCase):

    def test_attempts_for_expired_bookings_are_closed(self):
        user = make_user('driver')
        spot = make_spot(make_user('owner', role='owner'), total_spots=2)
        stale = book(user, spot)
        live = book(user, spot)
        stale_payment, _ = PaymentGatewayService.initiate(stale, 'esewa')
        live_payment, _ = PaymentGatewayService.initiate(live, 'khalti')
        BookingLifecycle.cancel_booking(stale.id)

        self.assertEqual(close_abandoned_payments(), 1)

        stale_payment.refresh_from_db()
        live_payment.refresh_from_db()
        self.assertEqual(stale_payment.status, 'failed')
        self.assertEqual(live_payment.status, 'initiated')
