from __future__ import annotations

from typing import Final
from uuid import UUID

# Owner id Brickadia uses for public/unowned bricks
PUBLIC_OWNER_ID: Final[UUID] = UUID("ffffffff-ffff-ffff-ffff-ffffffffffff")

PROHIBITED_MARKER: Final[str] = "Micro"

# Companion plugin that captures world snapshots
AUTOSAVE_PLUGIN: Final[str] = "autosave_ez"
AUTOSAVE_EVENT: Final[str] = "save"

COMMAND_NAME: Final[str] = "antimicro"

# Ledger key prefixes
TIMER_PREFIX: Final[str] = "ts:"
VIOLATIONS_PREFIX: Final[str] = "violations:"
BANS_PREFIX: Final[str] = "bans:"

DEFAULT_HOST_ROOT: Final[str] = "../.."
DEFAULT_SAVES_DIR: Final[str] = "../../data/Saved/Builds"
DEFAULT_REWRITE_SAVE_NAME: Final[str] = "_anti_microbrick.brs"
DEFAULT_RELOAD_DELAY_SECONDS: Final[float] = 1.0

PERMANENT_BAN_DURATION: Final[str] = "-1"

MESSAGES = {
    "warn": (
        '<size="30"><color="a00">Microbricks are not allowed on this server!</> '
        "Please delete your microbricks or <b>they will be cleared</>.</>"
    ),
    "clearing": 'Clearing <color="ff0">{name}</>\'s microbricks...',
    "status": (
        "<b>You currently have {violations} microbrick violations. "
        "After {max_violations}, you will be temporarily banned.</>"
    ),
    "ban_permanent": "Microbricks are not allowed on this server.",
    "ban_temporary": (
        "Microbricks are not allowed on this server. "
        "This ban will be permanent in {remaining} more violations."
    ),
    "not_authorized": "You are not authorized to use this command.",
    "usage": "Usage: /antimicro clean <player> | /antimicro wipe confirm",
    "no_match": 'No connected player matches "{query}".',
    "cleaned": "Cleared microbrick records for <b>{name}</>.",
    "wipe_prompt": (
        "This deletes every microbrick timer, violation and ban record. "
        "Run <code>/antimicro wipe confirm</> to continue."
    ),
    "wiped": "All microbrick records have been wiped.",
}
