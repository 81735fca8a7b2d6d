"""Shared test fixtures for the Code Royale bot test suite."""

import sys
from pathlib import Path

import pytest

# Ensure bot/ is on the path so `royale_bot` imports work
BOT_ROOT = Path(__file__).parent.parent
if str(BOT_ROOT) not in sys.path:
    sys.path.insert(0, str(BOT_ROOT))

from royale_bot.models import (
    BarracksType, Owner, SiteGeometry, StructureSite, StructureType, Unit, UnitType,
)
from royale_bot.snapshot import MatchContext


@pytest.fixture
def make_site():
    """Factory for StructureSite values with sensible defaults."""
    def _make(site_id, x, y, radius=60, structure=StructureType.NONE,
              owner=Owner.NONE, barracks=BarracksType.NONE, **kwargs):
        return StructureSite(
            geometry=SiteGeometry(id=site_id, x=x, y=y, radius=radius),
            structure_type=structure,
            owner=owner,
            barracks_type=barracks,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_unit():
    def _make(x, y, owner=Owner.FRIENDLY, unit_type=UnitType.QUEEN, hp=200):
        return Unit(x=x, y=y, owner=owner, unit_type=unit_type, hp=hp)
    return _make


@pytest.fixture
def queens(make_unit):
    """Own queen on the left, enemy queen far right."""
    return [
        make_unit(200, 500),
        make_unit(1700, 500, owner=Owner.ENEMY),
    ]


@pytest.fixture
def make_snapshot():
    """Build a WorldSnapshot through a fresh MatchContext."""
    def _make(sites, units, gold=0, touched=-1, state=None):
        context = MatchContext([s.geometry for s in sites])
        if state:
            context.restore(state)
        return context.build_snapshot(gold, touched, sites, units)
    return _make
