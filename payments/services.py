# ==================== PAYMENTS/SERVICES.PY ====================
import logging
import uuid
from decimal import Decimal

import requests
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from bookings.services import BookingLifecycle
from utils.exceptions import InvalidTransition, PaymentFailed, PaymentNotFound
from .models import Payment

logger = logging.getLogger(__name__)


class PaymentGatewayService:
    """Two-phase wallet payments: initiate returns redirect data, the gateway
    later reports the outcome against the payment's correlation id."""

    @staticmethod
    def initiate(booking, method):
        """Start a payment attempt for a pending booking"""
        if booking.booking_status != 'active' or booking.payment_status != 'pending':
            raise InvalidTransition(
                f'Cannot pay for a {booking.booking_status} booking with {booking.payment_status} payment.'
            )

        payment = Payment.objects.create(
            booking=booking,
            correlation_id=uuid.uuid4().hex,
            method=method,
            amount=booking.total_amount,
            status='initiated',
        )

        try:
            redirect = PaymentGatewayService._start(payment)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"{method} initiation failed for booking {booking.booking_code}: {str(e)}")
            payment.status = 'failed'
            payment.failure_reason = str(e)[:500]
            payment.resolved_at = timezone.now()
            payment.save(update_fields=['status', 'failure_reason', 'resolved_at', 'updated_at'])
            raise PaymentFailed('Could not reach the payment gateway. Please try again.')

        payment.gateway_response = redirect
        payment.save(update_fields=['gateway_response', 'updated_at'])

        logger.info(f"Payment {payment.correlation_id} initiated via {method} for booking {booking.booking_code}")
        return payment, redirect

    @staticmethod
    def _start(payment):
        if settings.PAYMENT_GATEWAY_MODE == 'mock':
            return {
                'gateway': payment.method,
                'mode': 'mock',
                'correlation_id': payment.correlation_id,
                'payment_url': f"{settings.PAYMENT_SUCCESS_URL}?correlation_id={payment.correlation_id}",
            }
        if payment.method == 'esewa':
            return PaymentGatewayService._esewa_form(payment)
        return PaymentGatewayService._khalti_initiate(payment)

    @staticmethod
    def _esewa_form(payment):
        """eSewa is a browser form post; the client submits these fields to form_url"""
        amount = str(payment.amount)
        return {
            'gateway': 'esewa',
            'correlation_id': payment.correlation_id,
            'form_url': settings.ESEWA_PAYMENT_URL,
            'fields': {
                'amt': amount,
                'psc': '0',
                'pdc': '0',
                'txAmt': '0',
                'tAmt': amount,
                'pid': payment.correlation_id,
                'scd': settings.ESEWA_MERCHANT_ID,
                'su': settings.PAYMENT_SUCCESS_URL,
                'fu': settings.PAYMENT_FAILURE_URL,
            },
        }

    @staticmethod
    def _khalti_initiate(payment):
        booking = payment.booking
        response = requests.post(
            settings.KHALTI_INITIATE_URL,
            headers={'Authorization': f'Key {settings.KHALTI_SECRET_KEY}'},
            json={
                'return_url': settings.PAYMENT_SUCCESS_URL,
                'website_url': settings.PAYMENT_SUCCESS_URL,
                'amount': int(payment.amount * Decimal(100)),  # paisa
                'purchase_order_id': payment.correlation_id,
                'purchase_order_name': f'Parking {booking.booking_code}',
            },
            timeout=settings.PAYMENT_REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()

        if not data.get('pidx') or not data.get('payment_url'):
            logger.error(f"Unexpected Khalti response for {payment.correlation_id}: {data}")
            raise ValueError('Khalti response missing pidx or payment_url')

        return {
            'gateway': 'khalti',
            'correlation_id': payment.correlation_id,
            'pidx': data['pidx'],
            'payment_url': data['payment_url'],
        }

    @staticmethod
    def verify_esewa(payment, ref_id):
        """Ask eSewa whether ref_id really paid this attempt; always true in mock mode"""
        if settings.PAYMENT_GATEWAY_MODE == 'mock':
            return True

        response = requests.post(
            settings.ESEWA_VERIFY_URL,
            data={
                'amt': str(payment.amount),
                'scd': settings.ESEWA_MERCHANT_ID,
                'rid': ref_id,
                'pid': payment.correlation_id,
            },
            timeout=settings.PAYMENT_REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        verified = 'success' in response.text.lower()
        if not verified:
            logger.warning(f"eSewa did not verify {ref_id} for payment {payment.correlation_id}")
        return verified

    @staticmethod
    def handle_outcome(correlation_id, succeeded, transaction_ref='', reason=''):
        """Apply a gateway outcome to the payment and its booking.

        Only the first outcome for a payment is applied; repeats return the
        payment unchanged.
        """
        payment = Payment.objects.filter(correlation_id=correlation_id).first()
        if payment is None:
            raise PaymentNotFound()

        now = timezone.now()
        with transaction.atomic():
            resolved = Payment.objects.filter(pk=payment.pk, status='initiated').update(
                status='succeeded' if succeeded else 'failed',
                transaction_ref=transaction_ref,
                failure_reason=reason[:500],
                resolved_at=now,
                updated_at=now,
            )
            if not resolved:
                logger.info(f"Duplicate outcome for payment {correlation_id} ignored")
                payment.refresh_from_db()
                return payment

            if succeeded:
                PaymentGatewayService._apply_success(payment, transaction_ref or correlation_id)
            else:
                BookingLifecycle.fail_payment(payment.booking_id, reason)

        payment.refresh_from_db()
        return payment

    @staticmethod
    def _apply_success(payment, transaction_ref):
        try:
            booking = BookingLifecycle.confirm_payment(payment.booking_id, transaction_ref, payment.method)
        except InvalidTransition:
            booking = None

        # Money was captured but the booking no longer holds a spot for it,
        # or another attempt already paid for it
        if booking is None or booking.transaction_ref != transaction_ref:
            Payment.objects.filter(pk=payment.pk).update(status='refund_pending')
            logger.error(f"Payment {payment.correlation_id} succeeded for an unpayable booking; refund required")
