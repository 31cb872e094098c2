from django.urls import path

from . import views

app_name = "accounts"

urlpatterns = [
    path("register", views.register, name="register"),
    path("login", views.login, name="login"),
    path("update-credentials", views.update_credentials, name="update_credentials"),
    path("me", views.me, name="me"),
]
