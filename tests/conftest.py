from __future__ import annotations

import pytest

from tests.factories import NOW, make_profile


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture
def roster():
    return (
        make_profile("1", "John Doe", "Engineering"),
        make_profile("2", "Jane Smith", "Marketing"),
        make_profile("3", "Mike Johnson", "Sales"),
        make_profile("4", "Sarah Wilson", "HR"),
        make_profile("5", "David Brown", "Finance"),
    )
