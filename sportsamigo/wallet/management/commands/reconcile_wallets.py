from django.core.management.base import BaseCommand

from wallet import ledger
from wallet.models import Wallet


class Command(BaseCommand):
    help = 'Compare stored wallet balances with their transaction ledger'

    def add_arguments(self, parser):
        parser.add_argument('--fix', action='store_true', help='Reset mismatched balances to the ledger value')

    def handle(self, *args, **options):
        fix = options['fix']
        mismatched = 0

        for wallet in Wallet.objects.select_related('user').order_by('id'):
            stored, derived = ledger.reconcile(wallet, fix=fix)
            if stored == derived:
                continue
            mismatched += 1
            action = "fixed" if fix else "mismatch"
            self.stdout.write(self.style.WARNING(
                f"{wallet.user.username}: stored {stored}, ledger {derived} ({action})"
            ))

        if mismatched:
            self.stdout.write(self.style.WARNING(f"{mismatched} wallet(s) out of balance"))
        else:
            self.stdout.write(self.style.SUCCESS("All wallets match their ledger"))
