from django.urls import path

from .views import (
    RegisterView,
    LoginView,
    RefreshTokenView,
    ProfileView,
    PartnerListView,
    PartnerVerificationView,
)

urlpatterns = [
    path('register/', RegisterView.as_view(), name='register'),
    path('login/', LoginView.as_view(), name='login'),
    path('refresh/', RefreshTokenView.as_view(), name='token-refresh'),
    path('profile/', ProfileView.as_view(), name='profile'),
]

# Admin partner management, mounted under /api/accounts/
partner_urlpatterns = [
    path('partners/', PartnerListView.as_view(), name='partner-list'),
    path('partners/<int:partner_id>/verification/', PartnerVerificationView.as_view(), name='partner-verification'),
]
