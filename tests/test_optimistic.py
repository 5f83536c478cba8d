# Area: Sync Tests
"""Tests for reconciled optimistic values and the jitter debounce."""

from sketchroom._sync.optimistic import JITTER_THRESHOLD_MS, Reconciled, stabilize


class TestReconciled:
    """Tests for the confirmed/optimistic tagged value."""

    def test_confirmed_wins(self):
        """Test the confirmed value is shown when present."""
        assert Reconciled(confirmed=10, optimistic=7).resolve() == 10

    def test_falls_back_to_optimistic(self):
        """Test the optimistic value fills in until confirmation."""
        assert Reconciled(optimistic=7).resolve() == 7
        assert Reconciled().resolve() is None

    def test_falsy_confirmed_still_wins(self):
        """Test a confirmed zero is not mistaken for missing."""
        assert Reconciled(confirmed=0, optimistic=7).resolve() == 0

    def test_updates_return_new_values(self):
        """Test with_* helpers leave the original untouched."""
        value = Reconciled(optimistic=1)
        confirmed = value.with_confirmed(2)
        assert value.confirmed is None
        assert confirmed.is_confirmed
        assert confirmed.with_optimistic(None).resolve() == 2


class TestStabilize:
    """Tests for stabilize."""

    def test_first_value_is_shown(self):
        """Test a candidate replaces an empty display."""
        assert stabilize(None, 5000) == 5000

    def test_small_change_suppressed(self):
        """Test changes within the threshold keep the shown value."""
        assert stabilize(10_000, 10_000 + JITTER_THRESHOLD_MS) == 10_000
        assert stabilize(10_000, 10_000 - 499) == 10_000

    def test_large_change_applied(self):
        """Test changes above the threshold move the display."""
        assert stabilize(10_000, 10_501) == 10_501

    def test_missing_candidate_keeps_display(self):
        """Test a missing candidate never clears the display."""
        assert stabilize(10_000, None) == 10_000
