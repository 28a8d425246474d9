import logging

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from sportsamigo.exceptions import ShopError, error_response
from sportsamigo.http import request_data

from .context import with_shop_context
from .exceptions import InvalidQuantity, ItemNotInCart
from .models import parse_quantity

logger = logging.getLogger(__name__)


def cart_response(cart, message):
    return JsonResponse({
        "success": True,
        "message": message,
        "count": cart.item_count,
        "cart": cart.to_dict(),
    })


# ------------------ CART VIEWS ------------------

@require_GET
@with_shop_context
def cart_view(request, ctx):
    error = None
    if request.GET.get("error") == "empty":
        error = "Your cart is empty. Please add some items before checkout."
    return JsonResponse({
        "success": True,
        "cart": ctx.cart.to_dict(),
        "authenticated": ctx.is_authenticated,
        "error": error,
    })


def add_product(request, ctx, product_id):
    """Shared by /cart/add/<id>/ and /shop/add-to-cart/<id>/."""
    data = request_data(request)
    try:
        quantity = parse_quantity(data.get("quantity"), default=1)
        ctx.cart.add_item(product_id, quantity, revision=data.get("revision"))
    except ShopError as e:
        logger.info("Add to cart refused for product %s: %s", product_id, e.message)
        return error_response(e)
    return cart_response(ctx.cart, "Item added to cart successfully")


@require_POST
@with_shop_context
def add_to_cart(request, ctx, product_id):
    return add_product(request, ctx, product_id)


@require_POST
@with_shop_context
def update_cart_quantity(request, ctx):
    data = request_data(request)
    item_id = data.get("itemId")
    try:
        if not item_id:
            raise ItemNotInCart("Item ID is required")
        if data.get("quantity") in (None, ""):
            raise InvalidQuantity()
        ctx.cart.update_quantity(item_id, data.get("quantity"), revision=data.get("revision"))
    except ShopError as e:
        return error_response(e)
    return cart_response(ctx.cart, "Cart updated successfully")


@require_POST
@with_shop_context
def remove_cart_item(request, ctx):
    data = request_data(request)
    item_id = data.get("itemId")
    try:
        if not item_id:
            raise ItemNotInCart("Item ID is required")
        ctx.cart.remove_item(item_id, revision=data.get("revision"))
    except ShopError as e:
        return error_response(e)
    return cart_response(ctx.cart, "Item removed from cart")


@require_POST
@with_shop_context
def clear_cart(request, ctx):
    try:
        ctx.cart.clear(revision=request_data(request).get("revision"))
    except ShopError as e:
        return error_response(e)
    return cart_response(ctx.cart, "Cart cleared successfully")


@require_GET
@with_shop_context
def cart_count(request, ctx):
    return JsonResponse({"success": True, "count": ctx.cart.item_count})
