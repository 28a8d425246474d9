from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.urls import reverse

from wallet.models import Wallet

from .models import UserProfile, user_role

AJAX = {'HTTP_ACCEPT': 'application/json'}


def make_user(email="player@example.com", role=UserProfile.PLAYER):
    user = User.objects.create_user(username=email, email=email, password="pass12345")
    UserProfile.objects.create(user=user, role=role)
    return user


@override_settings(WALLET_OPENING_BALANCE=0)
class RegistrationTest(TestCase):

    def signup(self, **overrides):
        data = {
            'email': 'New.Player@Example.com',
            'first_name': 'New',
            'last_name': 'Player',
            'role': UserProfile.PLAYER,
            'password1': 'Str0ng-pass-99',
            'password2': 'Str0ng-pass-99',
        }
        data.update(overrides)
        return self.client.post(reverse('accounts:signup'), data, **AJAX)

    def test_signup_creates_user_profile_and_wallet(self):
        response = self.signup()

        self.assertEqual(response.status_code, 201)
        user = User.objects.get(email='new.player@example.com')
        self.assertEqual(user.username, 'new.player@example.com')
        self.assertEqual(user_role(user), UserProfile.PLAYER)
        self.assertTrue(Wallet.objects.filter(user=user).exists())

    def test_duplicate_email(self):
        make_user("new.player@example.com")
        response = self.signup()

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], "This email is already registered.")

    def test_admin_role_cannot_be_chosen(self):
        response = self.signup(role=UserProfile.ADMIN)
        self.assertEqual(response.status_code, 400)
        self.assertIn('role', response.json()['errors'])


class LoginTest(TestCase):

    def setUp(self):
        self.player = make_user()
        self.organizer = make_user("org@example.com", role=UserProfile.ORGANIZER)

    def test_login_and_profile(self):
        response = self.client.post(
            reverse('accounts:login'),
            {'email': 'PLAYER@example.com', 'password': 'pass12345'},
            **AJAX,
        )
        self.assertTrue(response.json()['success'])
        self.assertEqual(response.json()['user']['role'], UserProfile.PLAYER)

        profile = self.client.get(reverse('accounts:profile')).json()
        self.assertEqual(profile['user']['email'], 'player@example.com')

    def test_bad_password(self):
        response = self.client.post(
            reverse('accounts:login'),
            {'email': 'player@example.com', 'password': 'nope'},
            **AJAX,
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], "Invalid email or password")

    def test_return_url_must_be_local(self):
        response = self.client.post(
            reverse('accounts:login'),
            {'email': 'player@example.com', 'password': 'pass12345', 'returnUrl': 'https://evil.example/'},
        )
        self.assertRedirects(response, reverse('store:shop'), fetch_redirect_response=False)

    def test_profile_requires_login(self):
        response = self.client.get(reverse('accounts:profile'))
        self.assertEqual(response.status_code, 401)

    def test_profile_update(self):
        self.client.force_login(self.player)
        response = self.client.post(reverse('accounts:profile'), {'phone': '9876543210', 'preferred_sports': 'Cricket'})

        self.assertEqual(response.json()['profile']['preferredSports'], 'Cricket')
        self.player.profile.refresh_from_db()
        self.assertEqual(self.player.profile.phone, '9876543210')

    @override_settings(WALLET_OPENING_BALANCE=1000)
    def test_profile_of_account_without_one(self):
        root = User.objects.create_superuser("root@example.com", "root@example.com", "pass12345")
        self.client.force_login(root)

        response = self.client.get(reverse('accounts:profile'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(UserProfile.objects.get(user=root).role, UserProfile.ADMIN)
        wallet = Wallet.objects.get(user=root)
        self.assertEqual(wallet.balance, 0)
        self.assertFalse(wallet.transactions.exists())

        plain = User.objects.create_user("bare@example.com", "bare@example.com", "pass12345")
        self.client.force_login(plain)

        response = self.client.get(reverse('accounts:profile'))
        self.assertEqual(response.status_code, 404)
        self.assertFalse(UserProfile.objects.filter(user=plain).exists())
        self.assertFalse(Wallet.objects.filter(user=plain).exists())


class ShopLoginTest(TestCase):

    def setUp(self):
        self.player = make_user()
        self.organizer = make_user("org@example.com", role=UserProfile.ORGANIZER)

    def test_player_goes_to_checkout(self):
        response = self.client.post(reverse('accounts:shop_login'), {'email': 'player@example.com', 'password': 'pass12345'})
        self.assertRedirects(response, reverse('orders:checkout'), fetch_redirect_response=False)

    def test_non_player_is_refused(self):
        response = self.client.post(
            reverse('accounts:shop_login'),
            {'email': 'org@example.com', 'password': 'pass12345'},
            **AJAX,
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(
            response.json()['error'],
            "Only Player accounts can make purchases. Please contact admin if you need to shop.",
        )
        self.assertNotIn('_auth_user_id', self.client.session)

    def test_logged_in_player_is_redirected(self):
        self.client.force_login(self.player)
        response = self.client.get(reverse('accounts:shop_login') + '?returnUrl=/orders/')
        self.assertRedirects(response, '/orders/', fetch_redirect_response=False)

    def test_guest_sees_cart_summary(self):
        body = self.client.get(reverse('accounts:shop_login')).json()
        self.assertEqual(body['returnUrl'], reverse('orders:checkout'))
        self.assertEqual(body['cart']['itemCount'], 0)


class RoleGatingTest(TestCase):

    def test_roles(self):
        superuser = User.objects.create_superuser('root', 'root@example.com', 'pass12345')
        self.assertEqual(user_role(superuser), UserProfile.ADMIN)
        self.assertIsNone(user_role(None))

    def test_wallet_is_players_only(self):
        self.client.force_login(make_user("org@example.com", role=UserProfile.ORGANIZER))
        response = self.client.get(reverse('wallet:wallet'))
        self.assertEqual(response.status_code, 403)
