"""
Module Catalog - Static definitions of drawable modules and upgrades.

Templates here are the single source of truth for module economics:
purchase cost, per-draw yield and instability contribution.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from .state import CoreModule, ModuleKind


@dataclass(frozen=True)
class ModuleTemplate:
    """Definition of a module kind. Instances get an id from create_module()."""
    kind: ModuleKind
    name: str
    tier: int
    cost_flux: int
    cost_credits: int
    gen_flux: int
    gen_credits: int
    add_instability: int
    sponsored: bool = False
    is_warp_core: bool = False

    def cost_label(self) -> str:
        """Human-readable purchase cost: '3 flux' or '3 flux + 2 credits'."""
        label = f"{self.cost_flux} flux"
        if self.cost_credits > 0:
            label += f" + {self.cost_credits} credits"
        return label


MODULE_TEMPLATES: dict[ModuleKind, ModuleTemplate] = {
    ModuleKind.FLUX_COIL: ModuleTemplate(
        kind=ModuleKind.FLUX_COIL,
        name="Flux Coil",
        tier=1,
        cost_flux=3,
        cost_credits=0,
        gen_flux=2,
        gen_credits=0,
        add_instability=1,
    ),
    ModuleKind.SPONSORED_RELAY: ModuleTemplate(
        kind=ModuleKind.SPONSORED_RELAY,
        name="Sponsored Relay",
        tier=1,
        cost_flux=5,
        cost_credits=0,
        gen_flux=1,
        gen_credits=2,
        add_instability=1,
        sponsored=True,
    ),
    ModuleKind.STABILIZER: ModuleTemplate(
        kind=ModuleKind.STABILIZER,
        name="Stabilizer",
        tier=1,
        cost_flux=4,
        cost_credits=0,
        gen_flux=0,
        gen_credits=0,
        add_instability=-1,
    ),
    ModuleKind.VOLATILE_LENS: ModuleTemplate(
        kind=ModuleKind.VOLATILE_LENS,
        name="Volatile Lens",
        tier=2,
        cost_flux=7,
        cost_credits=0,
        gen_flux=4,
        gen_credits=0,
        add_instability=2,
    ),
    ModuleKind.WARP_CORE: ModuleTemplate(
        kind=ModuleKind.WARP_CORE,
        name="Warp Core",
        tier=3,
        cost_flux=10,
        cost_credits=0,
        gen_flux=1,
        gen_credits=0,
        add_instability=2,
        is_warp_core=True,
    ),
}

STARTING_BAG_KINDS: tuple[ModuleKind, ...] = (
    ModuleKind.FLUX_COIL,
    ModuleKind.FLUX_COIL,
    ModuleKind.SPONSORED_RELAY,
    ModuleKind.STABILIZER,
    ModuleKind.VOLATILE_LENS,
)


def get_template(kind: ModuleKind) -> ModuleTemplate:
    return MODULE_TEMPLATES[kind]


def create_module(kind: ModuleKind, module_id: int) -> CoreModule:
    """Factory: build a module instance of the given kind."""
    template = MODULE_TEMPLATES[kind]
    return CoreModule(
        id=f"module-{module_id}",
        name=template.name,
        kind=template.kind,
        tier=template.tier,
        cost_flux=template.cost_flux,
        cost_credits=template.cost_credits,
        gen_flux=template.gen_flux,
        gen_credits=template.gen_credits,
        add_instability=template.add_instability,
        sponsored=template.sponsored,
        is_warp_core=template.is_warp_core,
    )


def starting_bag() -> tuple[CoreModule, ...]:
    """The fixed opening bag. Ids run 1..N in catalog order."""
    return tuple(
        create_module(kind, index + 1)
        for index, kind in enumerate(STARTING_BAG_KINDS)
    )


# =============================================================================
# Upgrades
# =============================================================================

class UpgradeKind(str, Enum):
    """Credit-purchased upgrade tracks."""
    SLOT_CAPACITY = "slot-capacity"
    INSTABILITY_THRESHOLD = "instability-threshold"


@dataclass(frozen=True)
class UpgradeTrack:
    """
    One upgrade track.

    `stat_field` and `cost_field` name the GameState fields the track
    raises and charges against.
    """
    kind: UpgradeKind
    label: str
    stat_label: str
    stat_field: str
    cost_field: str
    cost_step: int
    stat_step: int = 1


UPGRADE_TRACKS: dict[UpgradeKind, UpgradeTrack] = {
    UpgradeKind.SLOT_CAPACITY: UpgradeTrack(
        kind=UpgradeKind.SLOT_CAPACITY,
        label="slot capacity",
        stat_label="slot capacity",
        stat_field="slot_capacity",
        cost_field="next_slot_capacity_cost",
        cost_step=2,
    ),
    UpgradeKind.INSTABILITY_THRESHOLD: UpgradeTrack(
        kind=UpgradeKind.INSTABILITY_THRESHOLD,
        label="instability tolerance",
        stat_label="instability threshold",
        stat_field="instability_threshold",
        cost_field="next_instability_cost",
        cost_step=3,
    ),
}
