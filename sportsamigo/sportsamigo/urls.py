from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from django.views.generic import RedirectView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', RedirectView.as_view(pattern_name='store:shop', permanent=False)),
    path('', include('accounts.urls')),
    path('shop/', include('store.urls')),
    path('cart/', include('cart.urls')),
    path('', include('orders.urls')),
    path('wallet/', include('wallet.urls')),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
