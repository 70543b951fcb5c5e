"""
Core models for the Peoples moderation platform.
Base classes and the per-user moderation profile.
"""

from django.conf import settings
from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone


class BaseModel(models.Model):
    """
    Abstract base model with timestamp tracking.

    Legacy tables keep their integer primary keys, so only the timestamps
    are shared here.
    """

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        verbose_name='Created At',
        help_text='Timestamp when record was created'
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated At',
        help_text='Timestamp when record was last updated'
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.__class__.__name__} ({self.pk})"


class UserProfile(BaseModel):
    """
    Moderation profile linked 1:1 with the Django User model.

    Holds the role used by the permission gate and the reputation score
    that review outcomes adjust.
    """

    ROLE_USER = 'user'
    ROLE_MODERATOR = 'moderator'
    ROLE_ADMIN = 'admin'

    ROLE_CHOICES = [
        (ROLE_USER, 'User'),
        (ROLE_MODERATOR, 'Moderator'),
        (ROLE_ADMIN, 'Administrator'),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='profile',
        verbose_name='User',
        help_text='The associated Django user account'
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_USER,
        db_index=True,
        verbose_name='Role',
        help_text='User role determining moderation permissions'
    )

    display_name = models.CharField(
        max_length=100,
        blank=True,
        verbose_name='Display Name',
    )

    reputation = models.PositiveIntegerField(
        default=0,
        verbose_name='Reputation',
        help_text='Score adjusted by moderation outcomes, never negative'
    )

    class Meta:
        db_table = 'user_profiles'
        verbose_name = 'User Profile'
        verbose_name_plural = 'User Profiles'

    def __str__(self):
        return f"{self.user.username} ({self.role})"

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_moderator(self):
        """Moderators and admins can review submissions."""
        return self.role in (self.ROLE_MODERATOR, self.ROLE_ADMIN)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, **kwargs):
    """Auto-create UserProfile when a new User is created."""
    if created:
        UserProfile.objects.get_or_create(user=instance)
