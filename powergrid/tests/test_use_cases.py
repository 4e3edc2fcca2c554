from django.test import TestCase

from powergrid.application import connections, use_cases
from powergrid.domain.exceptions import EntityNotFound, InvalidConnection
from powergrid.models import Battery, EventLog, PowerConnection


class BatteryUseCaseTest(TestCase):

    def setUp(self):
        self.battery = use_cases.new_battery(100, max_w=50)

    def test_new_battery_starts_empty(self):
        self.assertEqual(self.battery["capacity_wh"], 100)
        self.assertEqual(self.battery["charge_wh"], 0)
        self.assertEqual(self.battery["power_token"], "")
        self.assertTrue(self.battery["id"])
        self.assertTrue(
            EventLog.objects.filter(description__startswith="CREATED new battery").exists()
        )

    def test_charge_is_clamped_to_capacity(self):
        use_cases.charge_battery(self.battery["id"], 70)
        result = use_cases.charge_battery(self.battery["id"], 70)

        self.assertEqual(result["wh_change"], 30)
        self.assertEqual(result["battery"]["charge_wh"], 100)

    def test_discharge_is_clamped_to_zero(self):
        use_cases.charge_battery(self.battery["id"], 47)
        result = use_cases.discharge_battery(self.battery["id"], 83)

        self.assertEqual(result["wh_change"], -47)
        self.assertEqual(Battery.objects.get(pk=self.battery["id"]).charge_wh, 0)

    def test_set_power_is_clamped_to_max(self):
        result = use_cases.set_battery_power(self.battery["id"], 80)

        self.assertEqual(result["active_w"], 50)
        self.assertEqual(result["battery"]["active_w"], 50)

    def test_unknown_battery_raises(self):
        with self.assertRaises(EntityNotFound):
            use_cases.get_battery("missing")
        with self.assertRaises(EntityNotFound):
            use_cases.charge_battery("missing", 10)


class SolarAndLoadUseCaseTest(TestCase):

    def test_set_solar_power(self):
        solar = use_cases.new_solar_array(6800)

        result = use_cases.set_solar_power(solar["id"], 4000)

        self.assertEqual(result["active_w"], 4000)
        self.assertEqual(result["solar_array"]["max_w"], 6800)
        self.assertEqual(use_cases.get_solar_array(solar["id"])["active_w"], 4000)

    def test_set_load_power_never_negative(self):
        load = use_cases.new_load(300)

        result = use_cases.set_load_power(load["id"], -5)

        self.assertEqual(result["active_w"], 0)
        self.assertEqual(use_cases.get_load(load["id"])["active_w"], 0)

    def test_unknown_entities_raise(self):
        with self.assertRaises(EntityNotFound):
            use_cases.set_solar_power("missing", 10)
        with self.assertRaises(EntityNotFound):
            use_cases.get_load("missing")


class ConnectionUseCaseTest(TestCase):

    def setUp(self):
        self.solar = use_cases.new_solar_array(1000)
        self.battery = use_cases.new_battery(100)

    def test_new_connection_has_fresh_session(self):
        connection = connections.new_connection(
            "SOLAR", self.solar["id"], "BATTERY", self.battery["id"]
        )

        self.assertEqual(connection["source_id"], self.solar["id"])
        self.assertEqual(connection["transfer_session"]["power_token"], "")
        self.assertIsNone(connection["transfer_session"]["connection_time_utc_seconds"])
        self.assertEqual(connections.get_connection(connection["id"]), connection)

    def test_unknown_node_type_is_rejected(self):
        with self.assertRaises(InvalidConnection):
            connections.new_connection("WIND", "w1", "BATTERY", self.battery["id"])
        self.assertEqual(PowerConnection.objects.count(), 0)

    def test_missing_endpoint_is_rejected(self):
        with self.assertRaises(EntityNotFound):
            connections.new_connection("SOLAR", self.solar["id"], "LOAD", "missing")

    def test_empty_endpoint_id_is_rejected(self):
        with self.assertRaises(InvalidConnection) as ctx:
            connections.new_connection("SOLAR", "", "BATTERY", self.battery["id"])

        self.assertEqual(ctx.exception.reason, "source_id is required")

    def test_export_graph_lists_nodes_sinks_first(self):
        load = use_cases.new_load(100)
        connections.new_connection("SOLAR", self.solar["id"], "BATTERY", self.battery["id"])
        connections.new_connection("BATTERY", self.battery["id"], "LOAD", load["id"])

        nodes = connections.export_graph()

        self.assertEqual([node["type"] for node in nodes], ["LOAD", "BATTERY", "SOLAR"])
        self.assertEqual(nodes[0], {
            "id": load["id"],
            "type": "LOAD",
            "sourceType": "BATTERY",
            "sourceId": self.battery["id"],
            "sinkType": "",
            "sinkId": "",
        })
        self.assertEqual(nodes[2]["sinkId"], self.battery["id"])
        self.assertEqual(nodes[2]["sourceId"], "")
