"""
URL configuration for authentication and user lookup.

Mounted by config/urls.py:
    /api/auth/   -> auth_urlpatterns
    /api/users/  -> user_urlpatterns
"""

from django.urls import path

from authentication.views import (
    AvatarView,
    LoginView,
    MeView,
    ProfileView,
    RegisterView,
    UserDetailView,
    UserSearchView,
)

auth_urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("me/", MeView.as_view(), name="me"),
    path("profile/", ProfileView.as_view(), name="profile"),
    path("avatar/", AvatarView.as_view(), name="avatar"),
]

user_urlpatterns = [
    path("search/", UserSearchView.as_view(), name="user-search"),
    path("<int:pk>/", UserDetailView.as_view(), name="user-detail"),
]
