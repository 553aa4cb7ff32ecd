"""
Assembly stage sequence.

Every product goes through the same eleven stages in this order. The order of
STAGE_SEQUENCE is the only source of "next stage" logic.
"""

STAGE_SEQUENCE = (
    "LAP_AND_CLEAN",
    "PIN_EJECTOR",
    "INSTALL_EXTRACTOR",
    "FIT_BARREL",
    "TRIGGER_ASSEMBLY",
    "BUILD_SLIDE",
    "ASSEMBLE_LOWER",
    "MATE_SLIDE_FRAME",
    "FUNCTION_TEST",
    "FINAL_QC",
    "PACKAGE_AND_SERIALIZE",
)

_STAGE_POSITIONS = {stage: index for index, stage in enumerate(STAGE_SEQUENCE)}


def stage_label(stage):
    """FIT_BARREL -> 'Fit Barrel'"""
    labels = {"FINAL_QC": "Final QC"}
    return labels.get(stage, stage.replace("_", " ").title())


STAGE_CHOICES = [(stage, stage_label(stage)) for stage in STAGE_SEQUENCE]


def is_valid_stage(stage):
    return isinstance(stage, str) and stage in _STAGE_POSITIONS


def stage_index(stage):
    try:
        return _STAGE_POSITIONS[stage]
    except (KeyError, TypeError):
        raise ValueError(f"Unknown assembly stage: {stage!r}") from None


def first_stage():
    return STAGE_SEQUENCE[0]


def final_stage():
    return STAGE_SEQUENCE[-1]


def is_final_stage(stage):
    return stage_index(stage) == len(STAGE_SEQUENCE) - 1


def next_stage(stage):
    """Stage that follows `stage`, or None after the final stage."""
    index = stage_index(stage)
    if index + 1 >= len(STAGE_SEQUENCE):
        return None
    return STAGE_SEQUENCE[index + 1]


def serialize_stages():
    return [
        {"stage": stage, "label": stage_label(stage), "position": index + 1}
        for index, stage in enumerate(STAGE_SEQUENCE)
    ]
