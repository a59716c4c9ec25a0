# ==================== UTILS/EXCEPTIONS.PY ====================
from rest_framework.exceptions import APIException
from rest_framework import status


class InvalidTimeRange(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid booking time range.'
    default_code = 'invalid_time_range'


class SpotUnavailable(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'No parking spots available.'
    default_code = 'spot_unavailable'


class SpotNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Parking spot not found.'
    default_code = 'spot_not_found'


class SpotInUse(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Parking spot still has active bookings.'
    default_code = 'spot_in_use'


class BookingNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Booking not found.'
    default_code = 'booking_not_found'


class InvalidTransition(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Booking cannot change to the requested status.'
    default_code = 'invalid_transition'


class StoreUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Booking storage is temporarily unavailable. Please try again.'
    default_code = 'store_unavailable'


class PaymentNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Payment not found.'
    default_code = 'payment_not_found'


class PaymentFailed(APIException):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = 'Payment processing failed.'
    default_code = 'payment_failed'


class InvalidQRPayload(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'QR code is not a valid booking pass.'
    default_code = 'invalid_qr_payload'


class AvailabilityAtBound(Exception):
    """Raised by the inventory store when a spot counter is already at 0 or at total_spots."""

    def __init__(self, spot_id, delta):
        self.spot_id = spot_id
        self.delta = delta
        super().__init__(f"Spot {spot_id} availability cannot change by {delta}")
