from functools import wraps
from urllib.parse import urlencode

from django.contrib import messages
from django.http import JsonResponse
from django.shortcuts import redirect
from django.urls import reverse

from .models import user_role


def role_required(*roles, page=False):
    """Lets the view run only for logged-in users holding one of ``roles``.

    API callers get a 401/403 JSON body; with ``page=True`` the caller is
    redirected to the login page (or home) with a flash message instead.
    """
    label = " / ".join(role.title() + "s" for role in roles) or "Users"

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                if page:
                    messages.error(request, "Please login to continue")
                    query = urlencode({'returnUrl': request.get_full_path()})
                    return redirect(f"{reverse('accounts:login')}?{query}")
                return JsonResponse({'success': False, 'error': 'Authentication required'}, status=401)

            if roles and user_role(request.user) not in roles:
                if page:
                    messages.error(request, f"This page is available for {label.lower()} only")
                    return redirect('store:shop')
                return JsonResponse({'success': False, 'error': f'Access denied. {label} only.'}, status=403)

            return view(request, *args, **kwargs)
        return wrapper
    return decorator


player_required = role_required('player')
