# ==================== PAYMENTS/ADMIN.PY ====================
from django.contrib import admin
from django.utils.html import format_html
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = [
        'correlation_id', 'booking_link', 'amount',
        'method', 'status_badge', 'created_at'
    ]
    list_filter = ['status', 'method', 'created_at']
    search_fields = ['correlation_id', 'transaction_ref', 'booking__booking_code', 'booking__user__username']
    readonly_fields = [
        'booking', 'correlation_id', 'method', 'amount', 'status', 'transaction_ref',
        'failure_reason', 'gateway_response', 'created_at', 'updated_at', 'resolved_at'
    ]

    def booking_link(self, obj):
        return obj.booking.booking_code
    booking_link.short_description = 'Booking'

    def status_badge(self, obj):
        colors = {
            'initiated': 'gray',
            'succeeded': 'green',
            'failed': 'red',
            'refund_pending': 'orange',
        }
        return format_html(
            '<span style="color: {};">{}</span>',
            colors.get(obj.status, 'black'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        return False
