# ==================== PAYMENTS/WEBHOOKS.PY ====================
from decimal import Decimal, InvalidOperation
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST
import hmac
import json
import logging
import requests

from utils.exceptions import PaymentNotFound
from .models import Payment
from .serializers import PaymentCallbackSerializer
from .services import PaymentGatewayService

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def payment_callback(request):
    """Gateway outcome for a payment attempt

    Headers: X-Callback-Secret (required unless PAYMENT_GATEWAY_MODE is "mock")
    Body: {
        "correlation_id": "...",
        "status": "success|failed",
        "transaction_ref": "optional",
        "reason": "optional"
    }
    """
    if not verify_callback_secret(request.headers.get('X-Callback-Secret', '')):
        logger.warning("Payment callback rejected: missing or wrong callback secret")
        return JsonResponse({'status': 'forbidden'}, status=403)

    try:
        webhook_data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        logger.warning("Payment callback with malformed body")
        return JsonResponse({'status': 'invalid_payload'}, status=400)

    serializer = PaymentCallbackSerializer(data=webhook_data if isinstance(webhook_data, dict) else {})
    if not serializer.is_valid():
        return JsonResponse({'status': 'invalid_payload', 'errors': serializer.errors}, status=400)

    data = serializer.validated_data
    return _apply_outcome(
        data['correlation_id'],
        data['status'] == 'success',
        data['transaction_ref'],
        data['reason'],
    )


def verify_callback_secret(provided):
    """Mock mode accepts any caller; otherwise the shared secret must be configured and match"""
    if settings.PAYMENT_GATEWAY_MODE == 'mock':
        return True
    expected = settings.PAYMENT_CALLBACK_SECRET
    return bool(expected) and hmac.compare_digest(provided.encode(), expected.encode())


@csrf_exempt
@require_GET
def esewa_return(request):
    """eSewa redirects the customer back with ?oid=&amt=&refId= on success and ?oid= on failure"""
    oid = request.GET.get('oid')
    amt = request.GET.get('amt')
    ref_id = request.GET.get('refId')

    if not oid:
        return JsonResponse({'status': 'invalid_payload'}, status=400)

    if not (amt and ref_id):
        return _apply_outcome(oid, False, reason='Cancelled or failed at eSewa')

    payment = Payment.objects.filter(correlation_id=oid).first()
    if payment is None:
        logger.warning(f"Payment not found for eSewa return: {oid}")
        return JsonResponse({'status': 'not_found'}, status=404)

    paid_amount = parse_amount(amt)
    if paid_amount != payment.amount:
        logger.warning(f"eSewa amount mismatch for {oid}: got {amt}, expected {payment.amount}")
        return _apply_outcome(oid, False, ref_id, reason=f'Amount mismatch: {amt}'[:500])

    try:
        verified = PaymentGatewayService.verify_esewa(payment, ref_id)
    except requests.RequestException as e:
        # Leave the attempt open so the customer can retry the return link
        logger.error(f"eSewa verification unreachable for {oid}: {str(e)}")
        return JsonResponse({'status': 'gateway_unavailable'}, status=502)

    if not verified:
        return _apply_outcome(oid, False, ref_id, reason='Not verified by eSewa')
    return _apply_outcome(oid, True, ref_id)


def parse_amount(text):
    """Finite Decimal for a gateway amount, or None for anything else (NaN, sNaN, Infinity, junk)"""
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def _apply_outcome(correlation_id, succeeded, transaction_ref='', reason=''):
    try:
        payment = PaymentGatewayService.handle_outcome(correlation_id, succeeded, transaction_ref, reason)
    except PaymentNotFound:
        logger.warning(f"Payment not found for callback: {correlation_id}")
        return JsonResponse({'status': 'not_found'}, status=404)

    logger.info(f"Payment callback processed: {correlation_id} -> {payment.status}")
    return JsonResponse({
        'status': 'success',
        'payment_status': payment.status,
        'booking_id': payment.booking_id,
    })
