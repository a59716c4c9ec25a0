import json

from django.test import TestCase

from bookings.qr import QR_FIELDS, build_qr_payload, decode_qr_payload, encode_qr_payload
from utils.exceptions import InvalidQRPayload
from .factories import book, make_spot, make_user


class QRPayloadTests(TestCase):

    def setUp(self):
        self.user = make_user('driver')
        self.spot = make_spot(make_user('owner', role='owner'))
        self.booking = book(self.user, self.spot)

    def test_payload_fields(self):
        payload = build_qr_payload(self.booking)

        self.assertEqual(tuple(payload), QR_FIELDS)
        self.assertEqual(payload['bookingCode'], self.booking.booking_code)
        self.assertEqual(payload['spotId'], self.spot.id)
        self.assertEqual(payload['userId'], self.user.id)

    def test_decode_returns_encoded_payload(self):
        payload = build_qr_payload(self.booking)
        self.assertEqual(decode_qr_payload(encode_qr_payload(payload)), payload)

    def test_rejects_malformed_text(self):
        for text in ['', 'not json', '[]', '42', json.dumps({'bookingCode': 'BK1'})]:
            with self.subTest(text=text):
                with self.assertRaises(InvalidQRPayload):
                    decode_qr_payload(text)

    def test_rejects_bad_field_values(self):
        payload = build_qr_payload(self.booking)
        bad_values = {
            'startTime': 'yesterday',
            'endTime': None,
            'bookingCode': '',
            'spotId': '7',
            'userId': True,
        }
        for field, value in bad_values.items():
            with self.subTest(field=field):
                with self.assertRaises(InvalidQRPayload):
                    decode_qr_payload(json.dumps({**payload, field: value}))

    def test_rejects_extra_fields(self):
        payload = {**build_qr_payload(self.booking), 'amount': 100}
        with self.assertRaises(InvalidQRPayload):
            decode_qr_payload(json.dumps(payload))
