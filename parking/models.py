# parking/models.py

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.core.validators import MinValueValidator, MaxValueValidator
from users.models import CustomUser


class ParkingSpot(models.Model):
    owner = models.ForeignKey(CustomUser, on_delete=models.PROTECT, related_name='owned_parking_spots')

    # Location info
    name = models.CharField(max_length=200)
    address = models.CharField(max_length=500)
    description = models.TextField(blank=True)
    latitude = models.FloatField(validators=[MinValueValidator(-90), MaxValueValidator(90)])
    longitude = models.FloatField(validators=[MinValueValidator(-180), MaxValueValidator(180)])

    # Capacity: available_spots is only changed through bookings.store.InventoryStore
    total_spots = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    available_spots = models.PositiveIntegerField()

    price_per_hour = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])

    amenities = models.JSONField(default=list, blank=True)  # ["cctv", "covered", "ev_charging"]
    open_time = models.TimeField(null=True, blank=True)
    close_time = models.TimeField(null=True, blank=True)

    # Stats
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    total_ratings = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['owner']),
            models.Index(fields=['latitude', 'longitude']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(available_spots__lte=F('total_spots')),
                name='parking_available_within_total',
            ),
            models.CheckConstraint(
                condition=Q(total_spots__gte=1),
                name='parking_total_spots_positive',
            ),
        ]

    def __str__(self):
        return f"{self.name} - {self.address}"

    @property
    def is_full(self):
        return self.available_spots <= 0

    def is_currently_open(self):
        """Check if the lot is open now based on open_time and close_time"""
        if not self.open_time or not self.close_time:
            return True
        now = timezone.localtime().time()
        return self.open_time <= now <= self.close_time


class Rating(models.Model):
    """A user's rating of a parking spot"""
    spot = models.ForeignKey(ParkingSpot, on_delete=models.CASCADE, related_name='ratings')
    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='spot_ratings')

    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('spot', 'user')
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.rating}/5 by {self.user.username} for {self.spot.name}"
