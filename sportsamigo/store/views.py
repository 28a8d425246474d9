from django.http import JsonResponse
from django.shortcuts import redirect
from django.views.decorators.http import require_GET, require_POST

from cart.context import with_shop_context
from cart.views import add_product
from orders import views as order_views
from sportsamigo.exceptions import ShopError, error_response

from .models import Product

CATEGORIES = [choice[0] for choice in Product.CATEGORY_CHOICES]


def products_response(products, short=False, **extra):
    return JsonResponse({
        'success': True,
        'products': [product.to_dict(short=short) for product in products],
        **extra,
    })


# ---------------- CATALOG ----------------

@require_GET
@with_shop_context
def shop(request, ctx):
    category = request.GET.get('category', '').strip()
    search = request.GET.get('search', '').strip()

    if search:
        products = Product.objects.search_items(search).in_stock()
    else:
        products = Product.objects.get_all_items(category=category or None, in_stock=True)

    return products_response(
        products,
        categories=CATEGORIES,
        selectedCategory=category,
        searchTerm=search,
        cart=ctx.cart.to_dict(),
    )


@require_GET
def search_products(request):
    query = request.GET.get('q', '').strip()
    if len(query) < 2:
        return JsonResponse({'success': False, 'error': 'Search term too short'}, status=400)

    products = Product.objects.search_items(query).in_stock()
    return products_response(products, short=True)


@require_GET
def featured_products(request):
    return products_response(Product.objects.get_featured_items())


@require_GET
def category_products(request, category):
    return products_response(Product.objects.get_items_by_category(category), category=category)


@require_GET
def product_detail(request, pk):
    try:
        product = Product.objects.get_item(pk)
    except ShopError as e:
        return error_response(e)
    return JsonResponse({'success': True, 'product': product.to_dict()})


@require_POST
@with_shop_context
def add_to_cart(request, ctx, product_id):
    return add_product(request, ctx, product_id)


# ---------------- CHECKOUT & ORDERS ----------------

@require_GET
def checkout(request):
    return redirect('orders:checkout')


def orders(request):
    return order_views.orders_list(request)


def order(request, order_number):
    return order_views.order_detail(request, order_number)


def checkout_success(request, order_number):
    return order_views.order_success(request, order_number)
