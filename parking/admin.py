# ==================== PARKING/ADMIN.PY ====================
from django.contrib import admin
from .models import ParkingSpot, Rating


class RatingInline(admin.TabularInline):
    model = Rating
    extra = 0
    readonly_fields = ['user', 'rating', 'comment', 'created_at']


@admin.register(ParkingSpot)
class ParkingSpotAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'price_per_hour', 'available_spots', 'total_spots', 'rating', 'created_at']
    list_filter = ['created_at']
    search_fields = ['name', 'address', 'owner__username']
    readonly_fields = ['available_spots', 'created_at', 'updated_at', 'total_ratings', 'rating']
    inlines = [RatingInline]
    fieldsets = (
        ('Basic Info', {'fields': ('owner', 'name', 'description', 'address')}),
        ('Location', {'fields': ('latitude', 'longitude')}),
        ('Capacity', {'fields': ('total_spots', 'available_spots')}),
        ('Pricing', {'fields': ('price_per_hour',)}),
        ('Amenities & Hours', {'fields': ('amenities', 'open_time', 'close_time')}),
        ('Stats', {'fields': ('rating', 'total_ratings')}),
        ('Timestamps', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )

    def save_model(self, request, obj, form, change):
        if not change:
            obj.available_spots = obj.total_spots
            obj.save()
            return
        # Never write back the counter; bookings may have moved it since the form loaded
        obj.save(update_fields=[*form.changed_data, 'updated_at'])

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return [*self.readonly_fields, 'total_spots']
        return self.readonly_fields
