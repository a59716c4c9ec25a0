# ==================== UTILS/DISTANCE_CALCULATOR.PY ====================
from geopy.distance import great_circle

EARTH_RADIUS_KM = 6371


class DistanceCalculator:
    """Rank parking spots by distance from an observer"""

    @staticmethod
    def get_distance_km(lat1, lng1, lat2, lng2):
        """Great-circle distance in kilometers, rounded to 2 decimals"""
        coord1 = (lat1, lng1)
        coord2 = (lat2, lng2)
        return round(great_circle(coord1, coord2, radius=EARTH_RADIUS_KM).km, 2)

    @staticmethod
    def coordinates_of(spot):
        """Accept model instances or plain mappings with latitude/longitude"""
        if isinstance(spot, dict):
            return float(spot['latitude']), float(spot['longitude'])
        return float(spot.latitude), float(spot.longitude)

    @classmethod
    def distance_to(cls, observer, spot):
        lat, lng = cls.coordinates_of(spot)
        return cls.get_distance_km(observer[0], observer[1], lat, lng)

    @classmethod
    def sort_by_distance(cls, observer, spots):
        """Return [(spot, distance_km), ...] nearest first.

        sorted() is stable, so spots at the same distance keep their input order.
        """
        ranked = [(spot, cls.distance_to(observer, spot)) for spot in spots]
        return sorted(ranked, key=lambda pair: pair[1])

    @classmethod
    def find_nearest(cls, observer, spots):
        """Return (spot, distance_km) for the closest spot, or None if there are none"""
        nearest = None
        for spot in spots:
            distance = cls.distance_to(observer, spot)
            if nearest is None or distance < nearest[1]:
                nearest = (spot, distance)
        return nearest


def distance(a, b):
    """Distance in km between two (latitude, longitude) pairs"""
    return DistanceCalculator.get_distance_km(a[0], a[1], b[0], b[1])


sort_by_distance = DistanceCalculator.sort_by_distance
find_nearest = DistanceCalculator.find_nearest
