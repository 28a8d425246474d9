import logging

from django.contrib import messages
from django.contrib.auth import authenticate, login, logout
from django.http import JsonResponse
from django.shortcuts import redirect
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_POST

from cart.context import get_cart, preserve_cart
from sportsamigo.exceptions import NotFound, error_response
from sportsamigo.http import is_ajax, request_data

from .forms import LoginForm, ProfileForm, SignUpForm
from .models import UserProfile, user_role

logger = logging.getLogger(__name__)


def form_errors(form):
    return {field: [str(e) for e in errors] for field, errors in form.errors.items()}


def first_error(form):
    for errors in form.errors.values():
        return str(errors[0])
    return "Please correct the errors below."


def safe_return_url(request, url, default):
    if url and url_has_allowed_host_and_scheme(url, allowed_hosts={request.get_host()}, require_https=request.is_secure()):
        return url
    return default


def user_payload(user):
    return {
        'id': user.id,
        'email': user.email,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'role': user_role(user),
    }


@require_POST
def register_user(request):
    form = SignUpForm(request_data(request))
    if not form.is_valid():
        if is_ajax(request):
            return JsonResponse({'success': False, 'error': first_error(form), 'errors': form_errors(form)}, status=400)
        messages.error(request, "Please correct the errors below.")
        return redirect('accounts:login')

    user = form.save()
    logger.info("New %s account %s", user.profile.role, user.email)

    if is_ajax(request):
        return JsonResponse({'success': True, 'user': user_payload(user), 'redirectUrl': reverse('accounts:login')}, status=201)
    messages.success(request, "Account created! You can now log in.")
    return redirect('accounts:login')


def _authenticate(request, form):
    email = form.cleaned_data['email']
    return authenticate(request, username=email, password=form.cleaned_data['password'])


def _login_failed(request, message, status=400):
    if is_ajax(request):
        return JsonResponse({'success': False, 'error': message}, status=status)
    messages.error(request, message)
    return redirect('accounts:login')


@never_cache
@require_POST
def login_user(request):
    form = LoginForm(request_data(request))
    if not form.is_valid():
        return _login_failed(request, "Please provide both email and password")

    user = _authenticate(request, form)
    if user is None:
        logger.warning("Failed login for %s", form.cleaned_data['email'])
        return _login_failed(request, "Invalid email or password", status=401)

    # the guest cart is claimed by the user_logged_in receiver
    login(request, user)
    logger.info("Login successful for %s", user.email)

    next_url = safe_return_url(request, form.cleaned_data.get('returnUrl'), reverse('store:shop'))
    if is_ajax(request):
        return JsonResponse({'success': True, 'user': user_payload(user), 'redirectUrl': next_url})
    messages.success(request, "You have been logged in!")
    return redirect(next_url)


def _logout_keeping_cart(request):
    cart = get_cart(request) if request.user.is_authenticated else None
    logout(request)
    preserve_cart(request, cart)


@require_POST
def logout_user(request):
    _logout_keeping_cart(request)
    messages.success(request, "You have been logged out.")
    if is_ajax(request):
        return JsonResponse({'success': True})
    return redirect('accounts:login')


# ---------------- SHOP LOGIN ----------------

@never_cache
def shop_login(request):
    checkout_url = reverse('orders:checkout')

    if request.method != 'POST':
        return_url = safe_return_url(request, request.GET.get('returnUrl'), checkout_url)
        if request.user.is_authenticated and user_role(request.user) == UserProfile.PLAYER:
            return redirect(return_url)
        cart = get_cart(request)
        return JsonResponse({'success': True, 'cart': cart.to_dict(), 'returnUrl': return_url})

    form = LoginForm(request_data(request))
    if not form.is_valid():
        return _shop_login_failed(request, "Please provide both email and password")

    user = _authenticate(request, form)
    if user is None:
        return _shop_login_failed(request, "Invalid email or password", status=401)

    if user_role(user) != UserProfile.PLAYER:
        logger.warning("Shop login refused for non-player %s", user.email)
        return _shop_login_failed(
            request,
            "Only Player accounts can make purchases. Please contact admin if you need to shop.",
            status=403,
        )

    login(request, user)
    logger.info("Shop login successful for %s", user.email)

    next_url = safe_return_url(request, form.cleaned_data.get('returnUrl'), checkout_url)
    if is_ajax(request):
        return JsonResponse({'success': True, 'user': user_payload(user), 'redirectUrl': next_url})
    return redirect(next_url)


def _shop_login_failed(request, message, status=400):
    if is_ajax(request):
        return JsonResponse({'success': False, 'error': message}, status=status)
    messages.error(request, message)
    return redirect('accounts:shop_login')


@require_POST
def shop_logout(request):
    _logout_keeping_cart(request)
    return redirect('cart:cart')


# ---------------- PROFILE ----------------

@never_cache
def user_profile(request):
    if not request.user.is_authenticated:
        return JsonResponse({'success': False, 'error': 'Authentication required'}, status=401)

    profile = getattr(request.user, 'profile', None)
    if profile is None:
        # staff accounts made with createsuperuser have no profile yet
        if not request.user.is_staff:
            return error_response(NotFound("Profile not found"))
        profile = UserProfile.objects.create(user=request.user, role=UserProfile.ADMIN)

    if request.method == 'POST':
        form = ProfileForm(request.POST, request.FILES, instance=profile)
        if not form.is_valid():
            return JsonResponse({'success': False, 'error': first_error(form), 'errors': form_errors(form)}, status=400)
        profile = form.save()

    return JsonResponse({
        'success': True,
        'user': user_payload(request.user),
        'profile': {
            'phone': profile.phone,
            'bio': profile.bio,
            'image': profile.get_profile_image,
            'age': profile.age,
            'address': profile.address,
            'preferredSports': profile.preferred_sports,
            'organizationName': profile.organization_name,
            'teamName': profile.team_name,
        },
    })
