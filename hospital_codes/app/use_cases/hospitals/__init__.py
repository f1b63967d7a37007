"""
Hospital Use Cases

Hospital onboarding, code verification and suspension.
"""

from .deactivate_hospital_use_case import DeactivateHospitalUseCase
from .dtos import (
    DeactivateHospitalResponse,
    GenerateHospitalCodeCommand,
    GenerateHospitalCodeResponse,
    HospitalInfo,
)
from .generate_hospital_code_use_case import GenerateHospitalCodeUseCase
from .verify_hospital_code_use_case import VerifyHospitalCodeUseCase

__all__ = [
    "DeactivateHospitalUseCase",
    "GenerateHospitalCodeUseCase",
    "VerifyHospitalCodeUseCase",
    "DeactivateHospitalResponse",
    "GenerateHospitalCodeCommand",
    "GenerateHospitalCodeResponse",
    "HospitalInfo",
]
