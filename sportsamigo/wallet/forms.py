from django import forms

from .exceptions import InvalidAmount
from .ledger import check_topup_amount


class TopUpForm(forms.Form):
    amount = forms.CharField()
    description = forms.CharField(max_length=200, required=False)
    paymentMethod = forms.CharField(max_length=50, required=False)

    def clean_amount(self):
        try:
            return check_topup_amount(self.cleaned_data['amount'])
        except InvalidAmount as e:
            raise forms.ValidationError(e.message)

    def clean_description(self):
        return self.cleaned_data.get('description', '').strip() or "Funds Added"

    def metadata(self):
        return {'payment_method': self.cleaned_data.get('paymentMethod') or 'Manual'}
