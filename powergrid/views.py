"""
API Layer — Power Grid Endpoints (Django REST Framework)

Thin controllers over the application use cases. Their responsibilities
are limited to:

- Reading and coercing request parameters
- Delegating to the use case
- Translating domain exceptions into HTTP responses

Status mapping:

- Wrong HTTP method: 405 (each view only implements its own verb)
- Missing, non-numeric or negative parameter: 404 with an error body
- Unknown entity or connection: 404 with an error body
- Cycle in the connection graph: 409 with an error body
- Transfer no-ops (stale token, expiry, no elapsed time): 200 with a note
"""

import math

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from powergrid.application import connections, delivery, use_cases
from powergrid.domain.exceptions import EntityNotFound, GraphCycleDetected, InvalidConnection


def _error(message, code=status.HTTP_404_NOT_FOUND):
    return Response({"error": message}, status=code)


def _quantity(data, name, required=True, default=None):
    """
    Returns (value, None) for a non-negative number, or (None, error response).
    """
    raw = data.get(name)
    if raw in (None, ""):
        if required:
            return None, _error(f"Missing parameter '{name}'")
        return default, None

    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None, _error(f"'{name}' must be a number")

    if not math.isfinite(value):
        return None, _error(f"'{name}' must be a number")
    if value < 0:
        return None, _error(f"'{name}' must not be negative")
    return value, None


def _not_found(exc):
    return _error(str(exc))


class CreateBatteryView(APIView):
    """POST /api/grid/batteries/"""

    def post(self, request):
        capacity_wh, error = _quantity(request.data, "capacity_wh")
        if error:
            return error
        max_w, error = _quantity(request.data, "max_w", required=False, default=0.0)
        if error:
            return error

        return Response(use_cases.new_battery(capacity_wh, max_w=max_w))


class BatteryDetailView(APIView):
    """GET /api/grid/batteries/<id>/"""

    def get(self, request, battery_id):
        try:
            return Response(use_cases.get_battery(battery_id))
        except EntityNotFound as exc:
            return _not_found(exc)


class ChargeBatteryView(APIView):
    """POST /api/grid/batteries/<id>/charge/"""

    def post(self, request, battery_id):
        add_wh, error = _quantity(request.data, "add_wh")
        if error:
            return error
        try:
            return Response(use_cases.charge_battery(battery_id, add_wh))
        except EntityNotFound as exc:
            return _not_found(exc)


class DischargeBatteryView(APIView):
    """POST /api/grid/batteries/<id>/discharge/"""

    def post(self, request, battery_id):
        consume_wh, error = _quantity(request.data, "consume_wh")
        if error:
            return error
        try:
            return Response(use_cases.discharge_battery(battery_id, consume_wh))
        except EntityNotFound as exc:
            return _not_found(exc)


class SetActivePowerView(APIView):
    """
    POST /api/grid/<kind>/<id>/power/

    Shared by batteries, solar arrays and loads. The use case is passed to
    as_view(set_power=...) per route.
    """

    set_power = None

    def post(self, request, entity_id):
        active_w, error = _quantity(request.data, "active_w")
        if error:
            return error
        try:
            return Response(self.set_power(entity_id, active_w))
        except EntityNotFound as exc:
            return _not_found(exc)


class CreateSolarArrayView(APIView):
    """POST /api/grid/solar-arrays/"""

    def post(self, request):
        max_w, error = _quantity(request.data, "max_w")
        if error:
            return error
        return Response(use_cases.new_solar_array(max_w))


class SolarArrayDetailView(APIView):
    """GET /api/grid/solar-arrays/<id>/"""

    def get(self, request, solar_id):
        try:
            return Response(use_cases.get_solar_array(solar_id))
        except EntityNotFound as exc:
            return _not_found(exc)


class CreateLoadView(APIView):
    """POST /api/grid/loads/"""

    def post(self, request):
        max_w, error = _quantity(request.data, "max_w")
        if error:
            return error
        return Response(use_cases.new_load(max_w))


class LoadDetailView(APIView):
    """GET /api/grid/loads/<id>/"""

    def get(self, request, load_id):
        try:
            return Response(use_cases.get_load(load_id))
        except EntityNotFound as exc:
            return _not_found(exc)


class CreateConnectionView(APIView):
    """POST /api/grid/connections/"""

    def post(self, request):
        try:
            result = connections.new_connection(
                request.data.get("source_type"),
                request.data.get("source_id"),
                request.data.get("sink_type"),
                request.data.get("sink_id"),
            )
        except InvalidConnection as exc:
            return _error(str(exc))
        except EntityNotFound as exc:
            return _not_found(exc)

        return Response(result)


class ConnectionDetailView(APIView):
    """GET /api/grid/connections/<id>/"""

    def get(self, request, connection_id):
        try:
            return Response(connections.get_connection(connection_id))
        except EntityNotFound as exc:
            return _not_found(exc)


class TakePowerView(APIView):
    """
    POST /api/grid/connections/<id>/take-power/

    The first call returns 0 Wh and a token. Each later call must present the
    most recent token to draw the energy accumulated since it was issued.
    """

    def post(self, request, connection_id):
        token = request.data.get("token") or ""
        try:
            result = delivery.take_power(connection_id, token)
        except EntityNotFound as exc:
            return _not_found(exc)
        except InvalidConnection as exc:
            return _error(str(exc))

        return Response(result)


class DeliverPowerView(APIView):
    """POST /api/grid/deliveries/"""

    def post(self, request):
        try:
            stats = delivery.deliver_all()
        except GraphCycleDetected as exc:
            return _error(str(exc), code=status.HTTP_409_CONFLICT)

        return Response(stats.to_record())


class ExportGraphView(APIView):
    """GET /api/grid/graph/"""

    def get(self, request):
        try:
            nodes = connections.export_graph()
        except GraphCycleDetected as exc:
            return _error(str(exc), code=status.HTTP_409_CONFLICT)

        return Response({"nodes": nodes})
