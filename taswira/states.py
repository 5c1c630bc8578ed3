"""Wizard steps and modes for the product photoshoot workflow"""
from enum import Enum


class WizardStep(str, Enum):
    """Steps of the product wizard, in forward order"""

    # Image and product name received, waiting for analysis
    upload = "upload"

    # Analysis done, choosing a category (preselected from the suggestion)
    category = "category"

    # Choosing photo or photo+video output
    mode = "mode"

    # Choosing a style or writing a custom prompt
    style = "style"

    # Styled image is being generated
    generating = "generating"

    # Reviewing the generated image
    confirm = "confirm"

    # Video job running in the background
    video_generating = "video_generating"

    # Final video (or playlist) available
    video_ready = "video_ready"


class WizardMode(str, Enum):
    """Output mode chosen by the user"""

    photo = "photo"
    photovideo = "photovideo"


# Where "back" leads from each step that allows it
BACK_TRANSITIONS = {
    WizardStep.category: WizardStep.upload,
    WizardStep.mode: WizardStep.category,
    WizardStep.style: WizardStep.mode,
    WizardStep.confirm: WizardStep.style,
    WizardStep.video_ready: WizardStep.confirm,
}
