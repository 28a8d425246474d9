from django.conf import settings
from django.contrib.auth.models import User
from django.core.management.base import BaseCommand

from accounts.models import user_role
from wallet import ledger


class Command(BaseCommand):
    help = 'Give every user with an empty wallet the welcome credit for their role'

    def handle(self, *args, **options):
        credits = settings.WALLET_WELCOME_CREDITS
        seeded = 0
        skipped = 0

        for user in User.objects.select_related('profile').order_by('id'):
            wallet = ledger.get_wallet(user)
            amount = credits.get(user_role(user))

            if not amount or wallet.transactions.exists():
                skipped += 1
                continue
            if not wallet.is_active:
                self.stdout.write(self.style.WARNING(f"Skipping inactive wallet of {user.username}"))
                skipped += 1
                continue

            ledger.credit(
                user,
                amount,
                f"Welcome credit for {user_role(user)}",
                reference_id=f"WELCOME_{user.pk}",
            )
            seeded += 1
            self.stdout.write(f"Credited {amount} to {user.username}")

        self.stdout.write(self.style.SUCCESS(f"Seeded {seeded} wallet(s), skipped {skipped}"))
