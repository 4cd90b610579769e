"""
Factory Boy factories for authentication models.

Provides realistic test data generation for:
- User: Email-login chat user with a unique username

Usage:
    from authentication.tests.factories import UserFactory

    # Create a user with default values
    user = UserFactory()

    # Create a user with a known password
    user = UserFactory(password="Str0ng-Pass!23")
"""

import factory

from authentication.models import User

DEFAULT_PASSWORD = "Str0ng-Pass!23"


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Examples:
        # Basic user
        user = UserFactory()

        # Named user
        user = UserFactory(username="alice", email="alice@example.com")

        # Inactive user (deactivated)
        user = UserFactory(is_active=False)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    bio = ""
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", DEFAULT_PASSWORD)
        return model_class.objects.create_user(
            email=kwargs.pop("email"),
            username=kwargs.pop("username"),
            password=password,
            **kwargs,
        )
