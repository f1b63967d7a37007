"""
Hospital Code Service Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class HospitalType(str, Enum):
    """Kind of medical institution"""

    clinic = "clinic"
    oriental_clinic = "oriental_clinic"
    hospital = "hospital"

    @property
    def type_code(self) -> str:
        return HOSPITAL_TYPE_CODES[self]


HOSPITAL_TYPE_CODES = {
    HospitalType.clinic: "CLINIC",
    HospitalType.oriental_clinic: "ORIENTAL",
    HospitalType.hospital: "HOSPITAL",
}


class Region(str, Enum):
    """Administrative region codes used inside hospital codes"""

    SEOUL = "SEOUL"
    BUSAN = "BUSAN"
    DAEGU = "DAEGU"
    INCHEON = "INCHEON"
    GWANGJU = "GWANGJU"
    DAEJEON = "DAEJEON"
    ULSAN = "ULSAN"
    SEJONG = "SEJONG"
    GYEONGGI = "GYEONGGI"
    GANGWON = "GANGWON"
    CHUNGBUK = "CHUNGBUK"
    CHUNGNAM = "CHUNGNAM"
    JEONBUK = "JEONBUK"
    JEONNAM = "JEONNAM"
    GYEONGBUK = "GYEONGBUK"
    GYEONGNAM = "GYEONGNAM"
    JEJU = "JEJU"


REGION_NAMES = {
    "서울": Region.SEOUL,
    "부산": Region.BUSAN,
    "대구": Region.DAEGU,
    "인천": Region.INCHEON,
    "광주": Region.GWANGJU,
    "대전": Region.DAEJEON,
    "울산": Region.ULSAN,
    "세종": Region.SEJONG,
    "경기": Region.GYEONGGI,
    "강원": Region.GANGWON,
    "충북": Region.CHUNGBUK,
    "충남": Region.CHUNGNAM,
    "전북": Region.JEONBUK,
    "전남": Region.JEONNAM,
    "경북": Region.GYEONGBUK,
    "경남": Region.GYEONGNAM,
    "제주": Region.JEJU,
}


class AuditAction(str, Enum):
    """Security-relevant actions recorded in the audit log"""

    signup = "signup"
    code_generation = "code_generation"
    code_usage = "code_usage"
    admin_access = "admin_access"
    code_validation = "code_validation"


class AlertType(str, Enum):
    MULTIPLE_FAILED_CODES = "MULTIPLE_FAILED_CODES"
    RAPID_SIGNUP_ATTEMPTS = "RAPID_SIGNUP_ATTEMPTS"
    SUSPICIOUS_IP = "SUSPICIOUS_IP"
    UNUSUAL_PATTERN = "UNUSUAL_PATTERN"


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class InviteCodeErrorCode(str, Enum):
    """Failure reasons returned by invite code validation and redemption"""

    INVALID_FORMAT = "INVITE_CODE_INVALID_FORMAT"
    NOT_FOUND = "INVITE_CODE_NOT_FOUND"
    EXPIRED = "INVITE_CODE_EXPIRED"
    MAX_USES_EXCEEDED = "INVITE_CODE_MAX_USES_EXCEEDED"
    HOSPITAL_INACTIVE = "INVITE_CODE_HOSPITAL_INACTIVE"
    ALREADY_USED = "INVITE_CODE_ALREADY_USED"
    RATE_LIMIT_EXCEEDED = "INVITE_CODE_RATE_LIMIT_EXCEEDED"
    SYSTEM_ERROR = "INVITE_CODE_SYSTEM_ERROR"


class HospitalCodeErrorCode(str, Enum):
    """Failure reasons returned by hospital code generation and lookup"""

    GENERATION_FAILED = "HOSPITAL_CODE_GENERATION_FAILED"
    DUPLICATE_CODE = "HOSPITAL_CODE_DUPLICATE"
    INVALID_HOSPITAL_INFO = "HOSPITAL_CODE_INVALID_INFO"
    RATE_LIMIT_EXCEEDED = "HOSPITAL_CODE_RATE_LIMIT"
    INVALID_FORMAT = "HOSPITAL_CODE_INVALID_FORMAT"
    NOT_FOUND = "HOSPITAL_CODE_NOT_FOUND"
    INACTIVE = "HOSPITAL_CODE_INACTIVE"


class UserRole(str, Enum):
    """Caller roles carried in access tokens"""

    doctor = "doctor"
    admin = "admin"
    customer = "customer"
