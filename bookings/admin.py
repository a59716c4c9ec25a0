# ==================== BOOKINGS/ADMIN.PY ====================
from django.contrib import admin
from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['booking_code', 'user', 'spot_name', 'booking_status', 'payment_status',
                    'start_time', 'end_time', 'total_amount', 'created_at']
    list_filter = ['booking_status', 'payment_status', 'payment_method', 'created_at']
    search_fields = ['booking_code', 'user__username', 'spot_name', 'transaction_ref']
    # Status fields change only through BookingLifecycle so the spot counter stays in sync
    readonly_fields = ['booking_code', 'user', 'spot', 'hours', 'total_amount', 'payment_status',
                       'booking_status', 'payment_method', 'transaction_ref', 'created_at',
                       'updated_at', 'paid_at', 'cancelled_at', 'completed_at']
