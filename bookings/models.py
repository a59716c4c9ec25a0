from django.db import models
from django.db.models import F, Q
from users.models import CustomUser
from parking.models import ParkingSpot


class Booking(models.Model):
    PAYMENT_STATUS_CHOICES = (
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    )
    BOOKING_STATUS_CHOICES = (
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('expired', 'Expired'),
    )
    PAYMENT_METHOD_CHOICES = (
        ('esewa', 'eSewa'),
        ('khalti', 'Khalti'),
    )
    TERMINAL_STATUSES = ('completed', 'cancelled', 'expired')

    booking_code = models.CharField(max_length=32, unique=True)

    # Relations (weak: history survives the spot being removed)
    user = models.ForeignKey(CustomUser, on_delete=models.PROTECT, related_name='bookings')
    spot = models.ForeignKey(ParkingSpot, on_delete=models.SET_NULL, null=True, related_name='bookings')
    spot_name = models.CharField(max_length=200, blank=True)
    spot_address = models.CharField(max_length=500, blank=True)

    # Slot
    start_time = models.DateTimeField(db_index=True)
    end_time = models.DateTimeField(db_index=True)
    hours = models.PositiveIntegerField()

    # Pricing
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)

    # Status
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending', db_index=True)
    booking_status = models.CharField(max_length=20, choices=BOOKING_STATUS_CHOICES, default='active', db_index=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, null=True, blank=True)
    transaction_ref = models.CharField(max_length=100, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'booking_status']),
            models.Index(fields=['spot', 'booking_status']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F('start_time')),
                name='booking_end_after_start',
            ),
            models.CheckConstraint(
                condition=Q(hours__gte=1),
                name='booking_hours_positive',
            ),
        ]

    def __str__(self):
        return f"Booking {self.booking_code} - {self.user.username} at {self.spot_name}"

    @property
    def is_terminal(self):
        return self.booking_status in self.TERMINAL_STATUSES

    @property
    def state(self):
        """Lifecycle state derived from the two status fields"""
        if self.booking_status != 'active':
            return self.booking_status.upper()
        return 'CONFIRMED' if self.payment_status == 'paid' else 'PENDING'
