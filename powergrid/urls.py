from django.urls import path

from powergrid.application import use_cases
from .views import (
    BatteryDetailView,
    ChargeBatteryView,
    ConnectionDetailView,
    CreateBatteryView,
    CreateConnectionView,
    CreateLoadView,
    CreateSolarArrayView,
    DeliverPowerView,
    DischargeBatteryView,
    ExportGraphView,
    LoadDetailView,
    SetActivePowerView,
    SolarArrayDetailView,
    TakePowerView,
)

urlpatterns = [
    path("batteries/", CreateBatteryView.as_view(), name="new-battery"),
    path("batteries/<str:battery_id>/", BatteryDetailView.as_view(), name="get-battery"),
    path("batteries/<str:battery_id>/charge/", ChargeBatteryView.as_view(), name="charge-battery"),
    path("batteries/<str:battery_id>/discharge/", DischargeBatteryView.as_view(), name="discharge-battery"),
    path(
        "batteries/<str:entity_id>/power/",
        SetActivePowerView.as_view(set_power=use_cases.set_battery_power),
        name="set-battery-power",
    ),
    path("solar-arrays/", CreateSolarArrayView.as_view(), name="new-solar-array"),
    path("solar-arrays/<str:solar_id>/", SolarArrayDetailView.as_view(), name="get-solar-array"),
    path(
        "solar-arrays/<str:entity_id>/power/",
        SetActivePowerView.as_view(set_power=use_cases.set_solar_power),
        name="set-solar-power",
    ),
    path("loads/", CreateLoadView.as_view(), name="new-load"),
    path("loads/<str:load_id>/", LoadDetailView.as_view(), name="get-load"),
    path(
        "loads/<str:entity_id>/power/",
        SetActivePowerView.as_view(set_power=use_cases.set_load_power),
        name="set-load-power",
    ),
    path("connections/", CreateConnectionView.as_view(), name="new-connection"),
    path("connections/<str:connection_id>/", ConnectionDetailView.as_view(), name="get-connection"),
    path("connections/<str:connection_id>/take-power/", TakePowerView.as_view(), name="take-power"),
    path("deliveries/", DeliverPowerView.as_view(), name="deliver-power"),
    path("graph/", ExportGraphView.as_view(), name="export-graph"),
]
