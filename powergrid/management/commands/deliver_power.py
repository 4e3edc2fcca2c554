"""
Runs one delivery sweep over every connection.

Meant to be driven by an external scheduler (cron, a systemd timer) every
few minutes; the command itself never waits or loops.
"""

from django.core.management.base import BaseCommand, CommandError

from powergrid.application.delivery import deliver_all
from powergrid.domain.exceptions import GraphCycleDetected


class Command(BaseCommand):
    help = "Push power along all connections (solar -> battery -> load)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--now",
            type=int,
            default=None,
            help="UTC time in seconds to run the sweep at (defaults to the current time).",
        )

    def handle(self, *args, **options):
        try:
            stats = deliver_all(now=options["now"])
        except GraphCycleDetected as exc:
            raise CommandError(str(exc))

        self.stdout.write(
            f"batteries charged with solar: {stats.battery_charged_with_solar_count}, "
            f"batteries discharged with load: {stats.battery_discharged_with_load_count}"
        )
        if not stats.all_succeeded:
            self.stderr.write("Some connections were skipped, see log for details")
