from django.db import models
from django.contrib.auth.models import User


# USER PROFILE
class UserProfile(models.Model):
    PLAYER = 'player'
    ORGANIZER = 'organizer'
    MANAGER = 'manager'
    ADMIN = 'admin'

    ROLE_CHOICES = [
        (PLAYER, 'Player'),
        (ORGANIZER, 'Organizer'),
        (MANAGER, 'Team Manager'),
        (ADMIN, 'Admin'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=PLAYER)
    phone = models.CharField(max_length=15, blank=True)
    bio = models.TextField(blank=True)
    profile_image = models.ImageField(upload_to='profile/', blank=True, null=True)

    # role specific
    age = models.PositiveIntegerField(blank=True, null=True)
    address = models.CharField(max_length=255, blank=True)
    preferred_sports = models.CharField(max_length=255, blank=True)  # players, comma separated
    organization_name = models.CharField(max_length=100, blank=True)  # organizers
    team_name = models.CharField(max_length=100, blank=True)  # managers

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user.username} ({self.role})"

    @property
    def get_profile_image(self):
        if self.profile_image:
            return self.profile_image.url
        return '/static/images/default_profile.png'


def user_role(user):
    """Role of ``user``; superusers without a profile count as admins."""
    if user is None or not user.is_authenticated:
        return None
    profile = getattr(user, 'profile', None)
    if profile is not None:
        return profile.role
    return UserProfile.ADMIN if user.is_superuser else None
