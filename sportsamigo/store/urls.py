from django.urls import path
from . import views

app_name = 'store'

urlpatterns = [
    path('', views.shop, name='shop'),
    path('search/', views.search_products, name='search'),
    path('featured/', views.featured_products, name='featured'),
    path('categories/<str:category>/', views.category_products, name='category'),
    path('product/<int:pk>/', views.product_detail, name='product'),
    path('add-to-cart/<int:product_id>/', views.add_to_cart, name='add_to_cart'),

    path('checkout/', views.checkout, name='checkout'),
    path('orders/', views.orders, name='orders'),
    path('order/<str:order_number>/', views.order, name='order'),
    path('checkout-success/<str:order_number>/', views.checkout_success, name='checkout_success'),
]
