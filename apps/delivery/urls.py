from django.urls import path

from . import views

app_name = "delivery"

urlpatterns = [
    # Menu (reads are public, writes are administrator only)
    path("menu", views.menu_collection, name="menu"),
    path("menu/<uuid:item_id>", views.menu_detail, name="menu_detail"),
    # Orders
    path("orders", views.order_collection, name="orders"),
    path("orders/<uuid:order_id>", views.order_detail, name="order_detail"),
    path("orders/<uuid:order_id>/cancel", views.order_cancel, name="order_cancel"),
    # Ratings
    path("ratings", views.rating_submit, name="ratings"),
]
