from django.contrib import admin
from .models import Wallet, WalletTransaction


class WalletTransactionInline(admin.TabularInline):
    model = WalletTransaction
    extra = 0
    can_delete = False
    fields = ('reference_id', 'transaction_type', 'amount', 'balance_after', 'description', 'status', 'created_at')
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ('user', 'balance', 'status', 'updated_at')
    list_filter = ('status',)
    search_fields = ('user__username', 'user__email')
    # balance only moves through the ledger
    readonly_fields = ('balance', 'created_at', 'updated_at')
    inlines = [WalletTransactionInline]


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    list_display = ('reference_id', 'wallet', 'transaction_type', 'amount', 'balance_after', 'status', 'created_at')
    list_filter = ('transaction_type', 'status')
    search_fields = ('reference_id', 'wallet__user__username', 'description')
    readonly_fields = ('wallet', 'amount', 'transaction_type', 'balance_after', 'reference_id', 'order', 'created_at')
