"""Management command to refresh weather for every registered location once."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from backend.api.views import get_weather_facade, on_loop


class Command(BaseCommand):
    help = "Refresh current weather for all registered locations"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--city", type=str, help="Register (geocode) this city before refreshing")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        facade = get_weather_facade()
        city = options.get("city")
        if city:
            ok, message = on_loop(facade.register_city, city)
            if not ok:
                raise CommandError(message)
            self.stderr.write(message)

        for report in on_loop(facade.refresh_all):
            self.stdout.write(json.dumps(report.as_dict()))
