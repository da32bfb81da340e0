import pytest

from scanner_alignment.preprocessing.synthetic import generate_survey


@pytest.fixture
def survey():
    """Five scanners, scanners 1-4 each sharing 12 beacons with scanner 0."""
    return generate_survey(5, rotation_indices=[5, 11, 17, 23], seed=7)
