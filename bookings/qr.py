import json

from django.utils.dateparse import parse_datetime

from utils.exceptions import InvalidQRPayload

QR_FIELDS = ('bookingCode', 'spotId', 'userId', 'startTime', 'endTime')


def build_qr_payload(booking):
    return {
        'bookingCode': booking.booking_code,
        'spotId': booking.spot_id,
        'userId': booking.user_id,
        'startTime': booking.start_time.isoformat(),
        'endTime': booking.end_time.isoformat(),
    }


def encode_qr_payload(payload):
    """Compact JSON text handed to the QR renderer"""
    return json.dumps(payload, separators=(',', ':'))


def decode_qr_payload(text):
    """Parse scanned QR text back into the payload dict, rejecting anything malformed"""
    try:
        payload = json.loads(text)
    except (TypeError, ValueError):
        raise InvalidQRPayload()

    if not isinstance(payload, dict) or set(payload) != set(QR_FIELDS):
        raise InvalidQRPayload()

    for key in ('startTime', 'endTime'):
        if not isinstance(payload[key], str):
            raise InvalidQRPayload()
        try:
            parsed = parse_datetime(payload[key])
        except ValueError:
            parsed = None
        if parsed is None:
            raise InvalidQRPayload()
    if not isinstance(payload['bookingCode'], str) or not payload['bookingCode']:
        raise InvalidQRPayload()
    for key in ('spotId', 'userId'):
        if isinstance(payload[key], bool) or not isinstance(payload[key], int):
            raise InvalidQRPayload()

    return payload
