from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from powergrid.application import connections, use_cases
from powergrid.models import PowerConnection, SolarArray


class DeliverPowerCommandTest(TestCase):

    def setUp(self):
        self.solar_id = use_cases.new_solar_array(1000)["id"]
        self.battery_id = use_cases.new_battery(100)["id"]
        connections.new_connection("SOLAR", self.solar_id, "BATTERY", self.battery_id)

    def test_runs_one_sweep(self):
        out = StringIO()

        call_command("deliver_power", now=1_700_000_000, stdout=out)

        self.assertIn("batteries charged with solar: 1", out.getvalue())
        self.assertEqual(
            PowerConnection.objects.get().connection_time_utc_seconds, 1_700_000_000
        )

    def test_cycle_fails_the_command(self):
        connections.new_connection("BATTERY", self.battery_id, "SOLAR", self.solar_id)

        with self.assertRaises(CommandError):
            call_command("deliver_power", stdout=StringIO())

    def test_skipped_connection_is_reported_on_stderr(self):
        SolarArray.objects.filter(pk=self.solar_id).delete()
        out = StringIO()
        err = StringIO()

        call_command("deliver_power", now=1_700_000_000, stdout=out, stderr=err)

        self.assertIn("batteries charged with solar: 0", out.getvalue())
        self.assertIn("Some connections were skipped", err.getvalue())
