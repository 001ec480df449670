from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import AuthApiIndexView, RegisterView, UserProfileView

urlpatterns = [
    path("", AuthApiIndexView.as_view()),
    path("register/", RegisterView.as_view()),
    path("login/", TokenObtainPairView.as_view()),
    path("refresh/", TokenRefreshView.as_view()),
    path("me/", UserProfileView.as_view()),
]
