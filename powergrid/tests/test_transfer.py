from django.test import SimpleTestCase

from powergrid.domain.transfer import (
    NOTE_EXPIRED_TOKEN,
    NOTE_FIRST_CONTACT,
    NOTE_INCORRECT_TOKEN,
    NOTE_NO_TIME_ELAPSED,
    NOTE_TRANSFERRED,
    TransferCapacity,
    TransferSession,
    calculate_transfer,
)

NOW = 1_700_000_000


class CalculateTransferTest(SimpleTestCase):
    """
    Tests for the token-gated transfer rule. Time is always injected.
    """

    def setUp(self):
        self.capacity = TransferCapacity(rate_w=500, energy_wh=100)
        self.session = TransferSession(
            token="token-1",
            connection_time_utc_seconds=NOW,
            expire_time_utc_seconds=NOW + 600,
        )

    def test_first_contact_issues_session_without_energy(self):
        transfer = calculate_transfer(None, NOW, "", self.capacity)

        self.assertEqual(transfer.energy_wh, 0)
        self.assertEqual(transfer.rate_w, 0)
        self.assertEqual(transfer.note, NOTE_FIRST_CONTACT)
        self.assertTrue(transfer.session.token)
        self.assertEqual(transfer.session.connection_time_utc_seconds, NOW)
        self.assertEqual(transfer.session.expire_time_utc_seconds, NOW + 600)

    def test_session_without_token_counts_as_first_contact(self):
        transfer = calculate_transfer(TransferSession(), NOW, "anything", self.capacity)

        self.assertEqual(transfer.energy_wh, 0)
        self.assertEqual(transfer.note, NOTE_FIRST_CONTACT)
        self.assertTrue(transfer.session.is_active)

    def test_incorrect_token_keeps_session_unchanged(self):
        transfer = calculate_transfer(self.session, NOW + 300, "forged", self.capacity)

        self.assertEqual(transfer.energy_wh, 0)
        self.assertEqual(transfer.note, NOTE_INCORRECT_TOKEN)
        self.assertEqual(transfer.session, self.session)

    def test_valid_token_moves_energy_for_elapsed_time(self):
        # 500 W for 6 minutes = 50 Wh, below the 100 Wh cap.
        transfer = calculate_transfer(self.session, NOW + 360, "token-1", self.capacity)

        self.assertAlmostEqual(transfer.energy_wh, 50)
        self.assertAlmostEqual(transfer.duration_hours, 0.1)
        self.assertAlmostEqual(transfer.rate_w, 500)
        self.assertEqual(transfer.note, NOTE_TRANSFERRED)
        self.assertNotEqual(transfer.session.token, "token-1")
        self.assertEqual(transfer.session.connection_time_utc_seconds, NOW + 360)
        self.assertEqual(transfer.session.expire_time_utc_seconds, NOW + 960)

    def test_energy_cap_throttles_effective_rate(self):
        capacity = TransferCapacity(rate_w=1200, energy_wh=100)

        transfer = calculate_transfer(self.session, NOW + 600, "token-1", capacity)

        self.assertAlmostEqual(transfer.energy_wh, 100)
        self.assertAlmostEqual(transfer.rate_w, 600)

    def test_one_hour_draw_is_capped_by_energy(self):
        session = TransferSession("token-1", NOW, NOW + 7200)

        transfer = calculate_transfer(session, NOW + 3600, "token-1", self.capacity)

        self.assertAlmostEqual(transfer.energy_wh, 100)
        self.assertAlmostEqual(transfer.rate_w, 100)
        self.assertAlmostEqual(transfer.duration_hours, 1)

    def test_zero_energy_cap_moves_nothing_but_advances(self):
        capacity = TransferCapacity(rate_w=500, energy_wh=0)

        transfer = calculate_transfer(self.session, NOW + 300, "token-1", capacity)

        self.assertEqual(transfer.energy_wh, 0)
        self.assertEqual(transfer.rate_w, 0)
        self.assertEqual(transfer.session.connection_time_utc_seconds, NOW + 300)

    def test_negative_cap_never_yields_negative_energy(self):
        capacity = TransferCapacity(rate_w=500, energy_wh=-20)

        transfer = calculate_transfer(self.session, NOW + 300, "token-1", capacity)

        self.assertEqual(transfer.energy_wh, 0)

    def test_expired_token_rearms_session(self):
        transfer = calculate_transfer(self.session, NOW + 601, "token-1", self.capacity)

        self.assertEqual(transfer.energy_wh, 0)
        self.assertEqual(transfer.note, NOTE_EXPIRED_TOKEN)
        self.assertNotEqual(transfer.session.token, "token-1")
        self.assertEqual(transfer.session.connection_time_utc_seconds, NOW + 601)
        self.assertEqual(transfer.session.expire_time_utc_seconds, NOW + 1201)

    def test_token_is_still_valid_at_expiry_second(self):
        transfer = calculate_transfer(self.session, NOW + 600, "token-1", self.capacity)

        self.assertEqual(transfer.note, NOTE_TRANSFERRED)
        self.assertGreater(transfer.energy_wh, 0)

    def test_no_elapsed_time_keeps_session(self):
        transfer = calculate_transfer(self.session, NOW, "token-1", self.capacity)

        self.assertEqual(transfer.energy_wh, 0)
        self.assertEqual(transfer.note, NOTE_NO_TIME_ELAPSED)
        self.assertEqual(transfer.session, self.session)

    def test_replayed_token_after_advance_is_a_no_op(self):
        advanced = calculate_transfer(self.session, NOW + 60, "token-1", self.capacity).session

        first_replay = calculate_transfer(advanced, NOW + 120, "token-1", self.capacity)
        second_replay = calculate_transfer(first_replay.session, NOW + 180, "token-1", self.capacity)

        self.assertEqual(first_replay.energy_wh, 0)
        self.assertEqual(second_replay.energy_wh, 0)
        self.assertEqual(first_replay.session, advanced)
        self.assertEqual(second_replay.session, advanced)

    def test_sequential_draws_each_issue_a_new_token(self):
        first = calculate_transfer(None, NOW, "", self.capacity)
        second = calculate_transfer(first.session, NOW + 60, first.session.token, self.capacity)
        third = calculate_transfer(second.session, NOW + 120, second.session.token, self.capacity)

        tokens = {first.session.token, second.session.token, third.session.token}
        self.assertEqual(len(tokens), 3)
        self.assertAlmostEqual(second.energy_wh, 500 / 60)
        self.assertAlmostEqual(third.energy_wh, 500 / 60)

    def test_custom_window(self):
        transfer = calculate_transfer(None, NOW, "", self.capacity, window_seconds=30)

        self.assertEqual(transfer.session.expire_time_utc_seconds, NOW + 30)
