from django.urls import path
from . import views

app_name = "orders"

# Checkout & Orders
urlpatterns = [
    path("checkout/", views.checkout_view, name="checkout"),
    path("checkout/order-success/<str:order_number>/", views.order_success, name="order_success"),
    path("orders/", views.orders_list, name="orders_list"),
    path("orders/<str:order_number>/", views.order_detail, name="order_detail"),
    path("orders/<str:order_number>/invoice/", views.download_invoice, name="download_invoice"),
    path("orders/<str:order_number>/cancel/", views.cancel_order, name="cancel_order"),
    path("orders/<str:order_number>/reorder/", views.reorder_items, name="reorder_items"),
]
