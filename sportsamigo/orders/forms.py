import re

from django import forms

from .models import Order

# COD is what the checkout page posts for cash on delivery
PAYMENT_METHODS = {
    'Wallet': Order.WALLET,
    'COD': Order.COD,
    Order.COD: Order.COD,
}

REQUIRED_FIELDS = ['fullName', 'phone', 'street', 'area', 'city', 'state', 'paymentMethod']


class CheckoutForm(forms.Form):
    fullName = forms.CharField(max_length=100, required=False, label="Full Name")
    phone = forms.CharField(max_length=15, required=False)
    email = forms.EmailField(required=False)
    street = forms.CharField(max_length=255, required=False)
    area = forms.CharField(max_length=100, required=False)
    city = forms.CharField(max_length=50, required=False)
    state = forms.CharField(max_length=50, required=False)
    landmark = forms.CharField(max_length=100, required=False)
    paymentMethod = forms.CharField(max_length=20, required=False)

    def missing_fields(self):
        data = getattr(self, 'cleaned_data', {})
        return [name for name in REQUIRED_FIELDS if not data.get(name)]

    def clean_phone(self):
        phone = self.cleaned_data.get('phone', '').strip()
        if phone and not re.fullmatch(r'\+?\d{10,14}', phone):
            raise forms.ValidationError("Phone number must be 10 digits.")
        return phone

    def shipping(self):
        data = self.cleaned_data
        return {
            'full_name': data['fullName'],
            'phone': data['phone'],
            'email': data['email'],
            'street': data['street'],
            'area': data['area'],
            'city': data['city'],
            'state': data['state'],
            'landmark': data['landmark'],
        }

    def payment_method(self):
        return PAYMENT_METHODS.get(self.cleaned_data['paymentMethod'], self.cleaned_data['paymentMethod'])
