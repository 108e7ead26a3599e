import os
import sys

import pytest

# Ensure the repository root is importable so 'src' and 'main' can be resolved
THIS_DIR = os.path.dirname(__file__)
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from src.models.liga import LigaCard  # noqa: E402
from src.models.tcgplayer import TCGPlayerCard  # noqa: E402


@pytest.fixture
def make_tcg():
    def _make(name="Monkey D. Luffy", number=None, set_name=None, market_price=None, product_id=1):
        payload = {"productId": product_id, "name": name, "cleanName": name}
        if number is not None:
            payload["extendedData"] = [
                {"name": "Rarity", "displayName": "Rarity", "value": "SR"},
                {"name": "Number", "displayName": "Card Number", "value": number},
            ]
        if set_name is not None:
            payload["setName"] = set_name
        if market_price is not None:
            payload["price"] = {"productId": product_id, "marketPrice": market_price}
        return TCGPlayerCard.model_validate(payload)

    return _make


@pytest.fixture
def make_liga():
    def _make(name="Monkey D. Luffy", code="", set_name=None, price=50.0):
        return LigaCard(name=name, numeric_code=code, set_name=set_name, price=price)

    return _make
