from django.urls import path
from . import views

app_name = "accounts"

urlpatterns = [
    # Authentication
    path('accounts/login/', views.login_user, name='login'),
    path('accounts/signup/', views.register_user, name='signup'),
    path('accounts/logout/', views.logout_user, name='logout'),

    # Shop login (players only, keeps the cart)
    path('shop-login/', views.shop_login, name='shop_login'),
    path('shop-login/logout/', views.shop_logout, name='shop_logout'),

    # Profile
    path('accounts/profile/', views.user_profile, name='profile'),
]
