"""Device-session admission control.

The device fingerprint is whatever the client sends (a user-agent string or a
locally generated id), so these limits only deter casual sharing of an
account across devices. They are not a security boundary.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_INSTRUCTOR_MAX_DEVICES, DEFAULT_STUDENT_MAX_DEVICES, UNLIMITED_DEVICES
from ..core.enums import Role
from ..core.exceptions import DeviceLimitExceeded, RecordNotFound, ValidationError
from .model import Account, Subscription
from .repository import AccountRepository, StudentRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceStatus:
    active_devices: tuple[str, ...]
    max_devices: Union[int, str]
    subscription: Optional[Subscription] = None


class SessionAdmissionService:
    def __init__(
        self,
        accounts: AccountRepository,
        students: StudentRepository,
        *,
        instructor_max_devices: int = DEFAULT_INSTRUCTOR_MAX_DEVICES,
        student_max_devices: int = DEFAULT_STUDENT_MAX_DEVICES,
    ):
        self._accounts = accounts
        self._students = students
        self._instructor_max = int(instructor_max_devices)
        self._student_max = int(student_max_devices)

    def _subscription_for(self, account: Account) -> Optional[Subscription]:
        if account.role != Role.STUDENT:
            return None
        student = self._students.get_by_id(account.account_id)
        return student.subscription if student else None

    def max_devices_for(self, account: Account, *, now: datetime | None = None) -> Union[int, str]:
        now = now or now_local()
        if account.role == Role.ADMIN:
            return UNLIMITED_DEVICES
        if account.role == Role.INSTRUCTOR:
            return self._instructor_max
        subscription = self._subscription_for(account)
        if subscription and subscription.is_valid_on(now.date()):
            return UNLIMITED_DEVICES
        return self._student_max

    def login(self, account: Account, device: str, *, now: datetime | None = None) -> Account:
        """Admit `device` for `account` or raise DeviceLimitExceeded.

        Known devices are always admitted. Unknown ones are appended when the
        role/plan limit still has room.
        """
        now = now or now_local()
        device = (device or "").strip()

        if account.role == Role.ADMIN:
            self._accounts.set_last_login(account.account_id, now)
            return account

        if not device:
            raise ValidationError("Device identifier is required")

        devices = list(account.active_devices)
        if device not in devices:
            limit = self.max_devices_for(account, now=now)
            if limit != UNLIMITED_DEVICES and len(devices) >= int(limit):
                logger.warning(
                    "device limit reached account=%s role=%s devices=%d",
                    account.account_id, account.role.value, len(devices),
                )
                if account.role == Role.INSTRUCTOR:
                    raise DeviceLimitExceeded("Maximum device limit reached for instructor account")
                raise DeviceLimitExceeded("Maximum device limit reached. Please subscribe for multiple device access.")
            devices.append(device)
            self._accounts.set_active_devices(account.account_id, devices)

        self._accounts.set_last_login(account.account_id, now)
        logger.info("login admitted account=%s role=%s", account.account_id, account.role.value)
        return self._accounts.get_by_id(account.account_id) or account

    def logout(self, account: Account, device: str) -> None:
        if account.role == Role.ADMIN:
            return
        devices = [d for d in account.active_devices if d != device]
        if len(devices) != len(account.active_devices):
            self._accounts.set_active_devices(account.account_id, devices)
            logger.info("device released account=%s", account.account_id)

    def device_status(self, account_id: int, *, now: datetime | None = None) -> DeviceStatus:
        account = self._accounts.get_by_id(account_id)
        if not account:
            raise RecordNotFound("Account not found")
        return DeviceStatus(
            active_devices=tuple(account.active_devices),
            max_devices=self.max_devices_for(account, now=now),
            subscription=self._subscription_for(account),
        )
