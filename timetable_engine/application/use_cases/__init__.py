"""ユースケース"""

from .request_models import (
    GenerateScheduleRequest,
    GenerateScheduleResult,
    ValidateConfigurationRequest,
    ValidateConfigurationResult,
)
from .generate_schedule import GenerateScheduleUseCase
from .validate_configuration import ValidateConfigurationUseCase

__all__ = [
    'GenerateScheduleRequest',
    'GenerateScheduleResult',
    'ValidateConfigurationRequest',
    'ValidateConfigurationResult',
    'GenerateScheduleUseCase',
    'ValidateConfigurationUseCase',
]
