"""Shared fixtures for the electricity tracker tests."""

from datetime import datetime

import pytest

from electricity_tracker.audit import ActivityLogger
from electricity_tracker.models import BillingSettings, MeterBillingSettings
from electricity_tracker.services import ElectricityDataService, LocalStorageBackend


FIXED_NOW = datetime(2024, 3, 15, 9, 30)


@pytest.fixture
def clock():
    """A clock frozen at 2024-03-15 09:30."""
    return lambda: FIXED_NOW


@pytest.fixture
def local_backend(tmp_path):
    return LocalStorageBackend(tmp_path / "data")


@pytest.fixture
def data_service(local_backend, clock):
    return ElectricityDataService(local_backend, clock=clock)


@pytest.fixture
def billing():
    return BillingSettings(unit_rate=7, service_fee=7)


@pytest.fixture
def meter_billing():
    return MeterBillingSettings(unit_rate=7, service_fee=7, minimum_charge=0)


class RecordingActivityLogger(ActivityLogger):
    """Keeps every logged event for inspection."""

    def __init__(self):
        super().__init__("electricity_tracker.tests")
        self.events = []

    def log(self, event):
        self.events.append(event)
        super().log(event)

    def types(self):
        return [event.event_type for event in self.events]


@pytest.fixture
def events():
    return RecordingActivityLogger()
