"""Summit Engine - Recovery, stimulus and daily recommendation engine for mountain athletes"""
from .recovery import calculate_baseline, classify_recovery, get_consecutive_rest_prompt
from .recommendation import build_recommendation
from .stimulus import compute_weekly_stimulus, get_mandatory_rest_groups
from .status import compute_status_layer
from .zones import ZoneValidationError
from .training_config import TrainingConfigError

__all__ = [
    'build_recommendation',
    'calculate_baseline',
    'classify_recovery',
    'compute_status_layer',
    'compute_weekly_stimulus',
    'get_consecutive_rest_prompt',
    'get_mandatory_rest_groups',
    'TrainingConfigError',
    'ZoneValidationError',
]
__version__ = '1.0.0'
