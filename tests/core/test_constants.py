"""Test module for configuration constants."""

from spdax.core.constants import NumericalConstants


class TestNumericalConstants:
    """Test numerical constants configuration."""

    def test_rtol_value(self):
        """Test that RTOL has the expected value."""
        assert NumericalConstants.RTOL == 1e-8

    def test_atol_value(self):
        """Test that ATOL has the expected value."""
        assert NumericalConstants.ATOL == 1e-10

    def test_tolerances_are_positive_floats(self):
        """Test that all tolerance constants are positive floats."""
        for value in (
            NumericalConstants.RTOL,
            NumericalConstants.ATOL,
            NumericalConstants.SYMMETRY_TOLERANCE,
            NumericalConstants.VALIDATION_TOLERANCE,
            NumericalConstants.TRANSPORT_IDENTITY_TOLERANCE,
        ):
            assert isinstance(value, float)
            assert value > 0

    def test_validation_looser_than_symmetry_check(self):
        """Test that the boolean validators are more permissive than the strict checks."""
        assert NumericalConstants.SYMMETRY_TOLERANCE <= NumericalConstants.VALIDATION_TOLERANCE

    def test_default_seed_is_int(self):
        """Test that the default seed is a plain integer."""
        assert isinstance(NumericalConstants.DEFAULT_SEED, int)
