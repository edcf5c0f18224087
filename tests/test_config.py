from __future__ import annotations

import pytest
from pydantic import ValidationError

from resto_admin.config import Settings


def test_page_size_options_are_sorted_and_unique():
    settings = Settings(page_size_options=[50, 10, 20, 10])

    assert settings.page_size_options == [10, 20, 50]


@pytest.mark.parametrize("options", [[], [0, 10], [-5]])
def test_page_size_options_must_be_positive(options):
    with pytest.raises(ValidationError):
        Settings(page_size_options=options)


def test_default_page_size_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(default_page_size=0)


def test_settings_are_frozen():
    settings = Settings()

    with pytest.raises(ValidationError):
        settings.api_base_url = "http://elsewhere"
