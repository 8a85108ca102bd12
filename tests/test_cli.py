"""
Tests for the command line interface.
"""

import pytest
from typer.testing import CliRunner

from bikeslots.cli.app import app
from bikeslots.services.availability_resolver import AvailabilityResolver


runner = CliRunner()

DAY = "2099-01-05"


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    db_path = (tmp_path / "cli.db").as_posix()
    path.write_text(
        f"log_level: WARNING\nstorage:\n  backend: sql\n  url: sqlite:///{db_path}\n",
        encoding="utf-8",
    )
    return str(path)


def _invoke(config_file, *args):
    return runner.invoke(app, [*args, "--config", config_file])


class TestCli:
    """End-to-end command tests against a temporary database."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "bikeslots" in result.stdout

    def test_init_db_seeds_services(self, config_file):
        result = _invoke(config_file, "init-db")

        assert result.exit_code == 0
        assert "Storage ready" in result.stdout

    def test_services_listing(self, config_file):
        result = _invoke(config_file, "services")

        assert result.exit_code == 0
        assert "Services" in result.stdout

    def test_empty_day_lists_all_slots(self, config_file):
        result = _invoke(config_file, "slots", DAY, "3")

        assert result.exit_code == 0
        assert "9 free slot(s)" in result.stdout
        assert "09:00" in result.stdout
        assert "17:00" in result.stdout

    def test_book_then_cancel(self, config_file):
        """Booking removes the slot from listings; cancelling restores it."""
        added = _invoke(
            config_file, "add-bike", "-u", "1", "--brand", "Honda", "--model", "Shine", "--plate", "KA01AB1234"
        )
        assert added.exit_code == 0
        assert "Bike 1 registered" in added.stdout

        booked = _invoke(
            config_file, "book", "-u", "1", "--bike", "1", "-s", "3", "-d", DAY, "--slot", "10:00"
        )
        assert booked.exit_code == 0
        assert "Booking 1 created" in booked.stdout

        after_booking = _invoke(config_file, "slots", DAY, "3")
        assert "8 free slot(s)" in after_booking.stdout

        cancelled = _invoke(config_file, "cancel", "1", "-u", "1")
        assert cancelled.exit_code == 0
        assert "cancelled" in cancelled.stdout

        after_cancel = _invoke(config_file, "slots", DAY, "3")
        assert "9 free slot(s)" in after_cancel.stdout

    def test_double_booking_fails(self, config_file):
        _invoke(config_file, "add-bike", "-u", "1", "--brand", "Bajaj", "--model", "CT100", "--plate", "MH01AA0001")
        args = ("book", "-u", "1", "--bike", "1", "-s", "3", "-d", DAY, "--slot", "11:00")

        first = _invoke(config_file, *args)
        second = _invoke(config_file, *args)

        assert first.exit_code == 0
        assert second.exit_code == 1
        assert "SlotUnavailable" in second.stdout

    def test_unknown_service(self, config_file):
        result = _invoke(config_file, "slots", DAY, "999")

        assert result.exit_code == 1
        assert "ServiceNotFound" in result.stdout

    def test_customer_cannot_set_status(self, config_file):
        result = _invoke(config_file, "status", "1", "confirmed", "-u", "1", "--role", "user")

        assert result.exit_code == 1
        assert "AuthorizationError" in result.stdout

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(app, ["services", "--config", str(tmp_path / "absent.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.stdout

    def test_past_date_offers_no_slots(self, config_file):
        result = _invoke(config_file, "slots", "2000-01-01", "3")

        assert result.exit_code == 0
        assert "No slots available" in result.stdout

    def test_invalid_config_reported(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("business_hours:\n  open_hour: 18\n  close_hour: 9\n", encoding="utf-8")

        result = runner.invoke(app, ["services", "--config", str(path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.stdout

    def test_command_errors_not_reported_as_config_errors(self, config_file, monkeypatch):
        """Only config loading failures are labelled as invalid configuration."""
        def broken(self, day, service_id):
            raise ValueError("corrupt slot value")

        monkeypatch.setattr(AvailabilityResolver, "available_slots", broken)

        result = _invoke(config_file, "slots", DAY, "3")

        assert isinstance(result.exception, ValueError)
        assert "Invalid configuration" not in result.stdout
