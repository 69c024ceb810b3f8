import typing as t

from ninja_extra import ControllerBase

from accounts.models import QueueSkipUser


class UserAwareController(ControllerBase):
    def user(self) -> QueueSkipUser:
        """Get the user for this request."""
        return t.cast(QueueSkipUser, self.context.request.user)  # type: ignore[union-attr]
