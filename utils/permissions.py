# ==================== UTILS/PERMISSIONS.PY ====================
from rest_framework import permissions


class IsOwnerRole(permissions.BasePermission):
    """Only parking-lot owners (or admins) may manage spot inventory"""
    message = 'Only parking owners can manage parking spots.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role in ['owner', 'admin'])


class IsOwner(permissions.BasePermission):
    """Permission to check if user is owner of the parking spot"""

    def has_object_permission(self, request, view, obj):
        return obj.owner == request.user or request.user.role == 'admin'


class IsBookingUser(permissions.BasePermission):
    """Permission to check if user is the one who made the booking"""

    def has_object_permission(self, request, view, obj):
        return obj.user == request.user


class IsBookingUserOrSpotOwner(permissions.BasePermission):
    """Permission for booking - either the booking user or the spot owner"""

    def has_object_permission(self, request, view, obj):
        if obj.user == request.user or request.user.role == 'admin':
            return True
        return obj.spot is not None and obj.spot.owner == request.user
