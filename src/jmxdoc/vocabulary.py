"""Closed vocabularies of the JMX document format.

Every enumerated string accepted anywhere in a document is listed here. Lists
keep their documented order so they can be shown to users as-is.
"""

from typing import Dict, Tuple

# Object names
NAME_MAX_LENGTH = 50  # exclusive
NAME_CHARSET = "A-Za-z0-9_=.,\\[\\]():;#@!$%*+<>?\\-"
RESERVED_TARGET_SET_NAME = "Predefined"

# Media folder/file names for movie and image targets
MEDIA_NAME_MAX_LENGTH = 30

CHANNEL_IDS: Tuple[str, ...] = (
    "hgpos", "vepos", "hevel", "vevel", "htpos", "vtpos", "hhvel", "hhpos",
    "hdvel", "htpos2", "vtpos2", "vepos2", "ai12", "ai13", "hgpos2", "spwav",
    "di0", "di1", "di2", "di3", "di4", "di5", "di6", "di7",
    "di8", "di9", "di10", "di11", "di12", "di13", "di14", "di15",
    "fix1_hvel", "fix1_vvel", "fix1_hpos", "fix1_vpos", "fix2_hvel", "fix2_vvel",
)  # fmt: skip

# Generic analog input ids aiN map onto the first 16 use-specific ids
CHANNEL_ALIASES: Dict[str, str] = {f"ai{i}": CHANNEL_IDS[i] for i in range(16)}

CHANNEL_COLORS: Tuple[str, ...] = (
    "white", "red", "green", "blue", "yellow", "magenta",
    "cyan", "dk green", "orange", "purple", "pink", "med gray",
)  # fmt: skip

PERTURBATION_KINDS: Tuple[str, ...] = ("sinusoid", "pulse train", "uniform noise", "gaussian noise")

TARGET_TYPES: Tuple[str, ...] = ("point", "dotpatch", "flowfield", "bar", "spot", "grating", "plaid", "movie", "image")

APERTURES: Tuple[str, ...] = ("rect", "oval", "rectannu", "ovalannu")

# Aperture names as shown in the GUI
APERTURE_ALIASES: Dict[str, str] = {
    "rectangular": "rect",
    "elliptical": "oval",
    "rectangular annulus": "rectannu",
    "elliptical annulus": "ovalannu",
}

SPECIAL_OPS: Tuple[str, ...] = (
    "none", "skip", "selbyfix", "selbyfix2", "switchfix", "rpdistro",
    "choosefix1", "choosefix2", "search", "selectDur", "findAndWait",
)  # fmt: skip

TRAJECTORY_COMPONENTS: Tuple[str, ...] = (
    "winH", "winV", "patH", "patV", "winDir", "patDir", "winSpd", "patSpd", "speed", "direc",
)  # fmt: skip

VSTAB_MODES: Tuple[str, ...] = ("none", "h", "v", "hv")

RV_KINDS: Tuple[str, ...] = ("uniform", "normal", "exponential", "gamma", "function")

RV_ASSIGNABLE_PARAMS: Tuple[str, ...] = (
    "mindur", "maxdur", "hpos", "vpos", "hvel", "vvel",
    "hacc", "vacc", "hpatvel", "vpatvel", "hpatacc", "vpatacc",
)  # fmt: skip

# Assignable parameters that live in the segment header, not a trajectory
RV_SEGMENT_PARAMS: Tuple[str, ...] = ("mindur", "maxdur")

# Trial-level limits
MAX_PERTURBATIONS = 4
MAX_RANDOM_VARIABLES = 10
TAG_LABEL_MAX_LENGTH = 17

# Trial target list entry that needs no target set
CHAIR_TARGET = "CHAIR"

# Channel configuration name that always resolves
DEFAULT_CHANNEL_CONFIG = "default"
