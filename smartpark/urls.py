# ==================== SMARTPARK/URLS.PY ====================
from django.contrib import admin
from django.urls import path, include
from rest_framework import permissions
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView, TokenObtainPairView

from users.views import UserViewSet
from parking.views import ParkingSpotViewSet
from bookings.views import BookingViewSet
from payments.views import PaymentViewSet
from payments.webhooks import payment_callback, esewa_return

# Create router and register viewsets
router = DefaultRouter()
router.register(r'parking-spots', ParkingSpotViewSet, basename='parking-spot')
router.register(r'bookings', BookingViewSet, basename='booking')

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # API versioning
    path('api/v1/', include([
        # Authentication endpoints
        path('auth/', include([
            path('register/', UserViewSet.as_view({'post': 'register'}), name='register'),
            path('login/', UserViewSet.as_view({'post': 'login'}), name='login'),
            path('token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
            path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
            path('profile/', UserViewSet.as_view(
                {'get': 'profile', 'put': 'profile'},
                permission_classes=[permissions.IsAuthenticated],
            ), name='profile'),
        ])),

        # API routes
        path('', include(router.urls)),

        # Payments
        path('payments/', include([
            path('initiate/', PaymentViewSet.as_view({'post': 'initiate_payment'}), name='initiate_payment'),
            path('status/', PaymentViewSet.as_view({'get': 'payment_status'}), name='payment_status'),
        ])),
    ])),

    path('webhooks/', include([
        path('payments/callback/', payment_callback, name='payment_callback'),
        path('payments/esewa/', esewa_return, name='esewa_return'),
    ])),
]
