import logging
from urllib.parse import urlencode

from django.core.paginator import EmptyPage, PageNotAnInteger, Paginator
from django.http import HttpResponse, JsonResponse
from django.shortcuts import redirect
from django.urls import reverse
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_GET, require_POST

from accounts.decorators import player_required
from accounts.models import UserProfile, user_role
from cart.context import with_shop_context
from sportsamigo.exceptions import ShopError, error_response
from sportsamigo.http import request_data
from wallet import ledger

from .checkout import can_use_wallet, checkout
from .exceptions import EmptyCart, IncompleteShippingInfo, OrderNotFound
from .forms import CheckoutForm
from .invoice import write_invoice
from .models import Order

logger = logging.getLogger(__name__)


def _get_order(user, order_number):
    order = Order.objects.filter(order_number=order_number, user=user).prefetch_related('items').first()
    if order is None:
        raise OrderNotFound()
    return order


# ---------------- CHECKOUT ----------------

@never_cache
@with_shop_context
def checkout_view(request, ctx):
    if request.method == 'POST':
        return place_order(request, ctx)
    if request.method != 'GET':
        return JsonResponse({'success': False, 'error': 'Method not allowed'}, status=405)

    if not ctx.is_authenticated or user_role(ctx.user) != UserProfile.PLAYER:
        query = urlencode({'returnUrl': reverse('orders:checkout')})
        return redirect(f"{reverse('accounts:shop_login')}?{query}")

    if ctx.cart.is_empty():
        return redirect(f"{reverse('cart:cart')}?error=empty")

    wallet = ledger.get_wallet(ctx.user)
    return JsonResponse({
        'success': True,
        'cart': ctx.cart.to_dict(),
        'walletBalance': float(wallet.balance),
        'canUseWallet': can_use_wallet(ctx.user),
    })


def place_order(request, ctx):
    if not ctx.is_authenticated:
        return JsonResponse({'success': False, 'error': 'Authentication required'}, status=401)
    if user_role(ctx.user) != UserProfile.PLAYER:
        return JsonResponse({'success': False, 'error': 'Access denied. Players only.'}, status=403)

    data = request_data(request)
    form = CheckoutForm(data)
    try:
        if ctx.cart.is_empty():
            raise EmptyCart()
        if not form.is_valid():
            return JsonResponse({'success': False, 'error': next(iter(form.errors.values()))[0]}, status=400)
        if form.missing_fields():
            raise IncompleteShippingInfo()
        order = checkout(
            ctx.cart,
            form.shipping(),
            form.payment_method(),
            ctx.user,
            revision=data.get('revision'),
        )
    except ShopError as e:
        logger.warning("Checkout failed for %s: %s", ctx.user.username, e.message)
        return error_response(e)

    return JsonResponse({
        'success': True,
        'message': 'Order placed successfully!',
        'orderId': order.order_number,
        'redirectUrl': reverse('orders:order_success', args=[order.order_number]),
    })


@require_GET
@player_required
def order_success(request, order_number):
    try:
        order = _get_order(request.user, order_number)
    except ShopError as e:
        return error_response(e)
    return JsonResponse({
        'success': True,
        'order': order.to_dict(),
        'walletUsed': order.payment_method == Order.WALLET,
    })


# ---------------- ORDERS ----------------

@require_GET
@player_required
def orders_list(request):
    query = request.GET.get("q", "").strip()
    orders = Order.objects.filter(user=request.user).prefetch_related('items')

    if query:
        orders = orders.filter(order_number__icontains=query)

    paginator = Paginator(orders, 10)
    page = request.GET.get('page', 1)

    try:
        orders = paginator.page(page)
    except PageNotAnInteger:
        orders = paginator.page(1)
    except EmptyPage:
        orders = paginator.page(paginator.num_pages)

    return JsonResponse({
        'success': True,
        'orders': [order.to_dict() for order in orders.object_list],
        'page': orders.number,
        'totalPages': paginator.num_pages,
        'total': paginator.count,
    })


@require_GET
@player_required
def order_detail(request, order_number):
    try:
        order = _get_order(request.user, order_number)
    except ShopError as e:
        return error_response(e)
    return JsonResponse({'success': True, 'order': order.to_dict()})


@require_GET
@player_required
def download_invoice(request, order_number):
    try:
        order = _get_order(request.user, order_number)
    except ShopError as e:
        return error_response(e)

    response = HttpResponse(content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="Invoice_{order.order_number}.pdf"'
    write_invoice(order, response)
    return response


# cancellation and reorder are not offered yet; both leave the order untouched

@require_POST
@player_required
def cancel_order(request, order_number):
    try:
        _get_order(request.user, order_number)
    except ShopError as e:
        return error_response(e)
    return JsonResponse({'success': False, 'message': 'Order cancellation is not available yet'})


@require_POST
@player_required
def reorder_items(request, order_number):
    try:
        _get_order(request.user, order_number)
    except ShopError as e:
        return error_response(e)
    return JsonResponse({'success': False, 'message': 'Reorder is not available yet'})
