# ==================== PARKING/SERIALIZERS.PY ====================
from rest_framework import serializers
from .models import ParkingSpot, Rating


class ParkingSpotListSerializer(serializers.ModelSerializer):
    """Simplified serializer for listing parking spots"""
    owner_name = serializers.CharField(source='owner.display_name', read_only=True)
    distance = serializers.SerializerMethodField()

    class Meta:
        model = ParkingSpot
        fields = ['id', 'name', 'address', 'latitude', 'longitude', 'price_per_hour', 'total_spots',
                  'available_spots', 'amenities', 'rating', 'total_ratings', 'owner_name', 'distance']

    def get_distance(self, obj):
        """Distance in km, set by the nearby/nearest searches"""
        return getattr(obj, 'distance', None)


class ParkingSpotDetailSerializer(serializers.ModelSerializer):
    """Detailed serializer for a parking spot with all info"""
    owner_name = serializers.CharField(source='owner.display_name', read_only=True)
    is_open_now = serializers.BooleanField(source='is_currently_open', read_only=True)

    class Meta:
        model = ParkingSpot
        fields = ['id', 'owner', 'owner_name', 'name', 'address', 'description', 'latitude', 'longitude',
                  'price_per_hour', 'total_spots', 'available_spots', 'amenities', 'open_time',
                  'close_time', 'is_open_now', 'rating', 'total_ratings', 'created_at', 'updated_at']
        read_only_fields = fields


class ParkingSpotCreateUpdateSerializer(serializers.ModelSerializer):
    """For creating/updating parking spots"""

    class Meta:
        model = ParkingSpot
        fields = ['id', 'name', 'address', 'description', 'latitude', 'longitude', 'price_per_hour',
                  'total_spots', 'available_spots', 'amenities', 'open_time', 'close_time']
        read_only_fields = ['id', 'available_spots']

    def validate_total_spots(self, value):
        # Capacity is fixed once bookings can hold units against it
        if self.instance is not None and value != self.instance.total_spots:
            raise serializers.ValidationError("Total spots cannot be changed after creation")
        return value

    def validate_amenities(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Amenities must be a list of strings")
        return value

    def validate(self, data):
        open_time = data.get('open_time', getattr(self.instance, 'open_time', None))
        close_time = data.get('close_time', getattr(self.instance, 'close_time', None))
        if open_time and close_time and close_time <= open_time:
            raise serializers.ValidationError("Close time must be after open time")
        return data

    def create(self, validated_data):
        return ParkingSpot.objects.create(
            owner=self.context['request'].user,
            available_spots=validated_data['total_spots'],
            **validated_data
        )

    def update(self, instance, validated_data):
        for field, value in validated_data.items():
            setattr(instance, field, value)
        # available_spots is left out so a concurrent booking's decrement is not overwritten
        instance.save(update_fields=[*validated_data, 'updated_at'])
        return instance


class RatingSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.display_name', read_only=True)

    class Meta:
        model = Rating
        fields = ['id', 'spot', 'user_name', 'rating', 'comment', 'created_at']
        read_only_fields = ['id', 'spot', 'user_name', 'created_at']
