import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class AuthMethod(models.TextChoices):
    """The ways a holder can present their identity."""

    SSO = "sso", "Single sign-on"
    GOVERNMENT_ID = "government_id", "Government ID"
    EMAIL = "email", "Email"
    WEB3_WALLET = "web3_wallet", "Web3 wallet"


class QueueSkipUserQueryset(models.QuerySet["QueueSkipUser"]):
    def by_identifier(self, method: AuthMethod, identifier: str) -> "QueueSkipUserQueryset":
        """Filter by the identifier matching an authentication method."""
        lookup = {
            AuthMethod.SSO: "sso_id",
            AuthMethod.GOVERNMENT_ID: "government_id",
            AuthMethod.EMAIL: "email__iexact",
            AuthMethod.WEB3_WALLET: "web3_address__iexact",
        }[method]
        return self.filter(**{lookup: identifier})


class QueueSkipUserManager(UserManager["QueueSkipUser"]):
    def get_queryset(self) -> QueueSkipUserQueryset:
        return QueueSkipUserQueryset(self.model, using=self._db)

    def by_identifier(self, method: AuthMethod, identifier: str) -> QueueSkipUserQueryset:
        return self.get_queryset().by_identifier(method, identifier)


class QueueSkipUser(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    government_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    sso_id = models.CharField(max_length=255, unique=True, null=True, blank=True)
    web3_address = models.CharField(max_length=128, unique=True, null=True, blank=True)

    objects = QueueSkipUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]
