from django.urls import path
from . import views

app_name = 'wallet'

urlpatterns = [
    path('', views.wallet_view, name='wallet'),
    path('balance/', views.wallet_balance, name='balance'),
    path('add/', views.add_funds, name='add_funds'),
    path('transactions/', views.transaction_history, name='transactions'),
    path('summary/', views.wallet_summary, name='summary'),
    path('validate-payment/', views.validate_payment, name='validate_payment'),
    path('transaction/<str:reference_id>/', views.transaction_detail, name='transaction_detail'),
]
