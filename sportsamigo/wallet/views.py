from django.core.paginator import EmptyPage, Paginator
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from accounts.decorators import player_required
from sportsamigo.exceptions import ShopError, error_response
from sportsamigo.http import request_data

from . import ledger
from .forms import TopUpForm
from .models import WalletTransaction

TRANSACTION_TYPES = {
    'credit': WalletTransaction.CREDIT,
    'debit': WalletTransaction.DEBIT,
}


def _positive_int(value, default, upper=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    return min(number, upper) if upper else number


@require_GET
@player_required
def wallet_view(request):
    wallet = ledger.get_wallet(request.user)
    transactions = ledger.get_player_transactions(request.user, limit=20)
    return JsonResponse({
        'success': True,
        'wallet': {
            'balance': float(wallet.balance),
            'formattedBalance': wallet.formatted_balance,
            'status': wallet.status,
        },
        'transactions': [txn.to_dict() for txn in transactions],
    })


@require_GET
@player_required
def wallet_balance(request):
    wallet = ledger.get_wallet(request.user)
    return JsonResponse({
        'success': True,
        'balance': float(wallet.balance),
        'calculatedBalance': float(ledger.calculate_balance(request.user)),
        'formatted': wallet.formatted_balance,
    })


@require_POST
@player_required
def add_funds(request):
    form = TopUpForm(request_data(request))
    if not form.is_valid():
        error = next(iter(form.errors.values()))[0]
        return JsonResponse({'success': False, 'error': error}, status=400)

    amount = form.cleaned_data['amount']
    try:
        wallet, txn = ledger.add_funds(
            request.user, amount, form.cleaned_data['description'], metadata=form.metadata(),
        )
    except ShopError as e:
        return error_response(e)

    return JsonResponse({
        'success': True,
        'newBalance': float(wallet.balance),
        'formattedBalance': wallet.formatted_balance,
        'transaction': txn.to_dict(),
        'message': f"{txn.get_formatted_amount()} added to your wallet successfully!",
    })


@require_GET
@player_required
def transaction_history(request):
    wallet = ledger.get_wallet(request.user)
    page_number = _positive_int(request.GET.get('page'), 1)
    limit = _positive_int(request.GET.get('limit'), 20, upper=100)
    kind = request.GET.get('type', 'all').lower()

    transactions = wallet.transactions.select_related('order')
    if kind in TRANSACTION_TYPES:
        transactions = transactions.filter(transaction_type=TRANSACTION_TYPES[kind])

    paginator = Paginator(transactions, limit)
    try:
        page = paginator.page(page_number)
    except EmptyPage:
        return JsonResponse({
            'success': True,
            'transactions': [],
            'page': page_number,
            'totalPages': paginator.num_pages,
            'total': paginator.count,
            'hasMore': False,
        })

    return JsonResponse({
        'success': True,
        'transactions': [txn.to_dict() for txn in page.object_list],
        'page': page.number,
        'totalPages': paginator.num_pages,
        'total': paginator.count,
        'hasMore': page.has_next(),
    })


@require_GET
@player_required
def wallet_summary(request):
    return JsonResponse({'success': True, 'summary': ledger.get_wallet_summary(request.user)})


@require_POST
@player_required
def validate_payment(request):
    data = request_data(request)
    try:
        result = ledger.validate_payment(request.user, data.get('amount'))
    except ShopError as e:
        return error_response(e)
    return JsonResponse({'success': True, **result})


@require_GET
@player_required
def transaction_detail(request, reference_id):
    try:
        txn = ledger.get_transaction_by_reference(request.user, reference_id)
    except ShopError as e:
        return error_response(e)
    return JsonResponse({'success': True, 'transaction': txn.to_dict()})
