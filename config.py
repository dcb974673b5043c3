"""
Home PT Reports Configuration
Supports AWS Parameter Store for production secrets
"""
import os
from functools import lru_cache

try:
    import boto3
except ImportError:
    boto3 = None


def get_parameter(name: str, default: str = "") -> str:
    """Get parameter from AWS Parameter Store or environment"""
    # Environment variable takes precedence
    env_key = name.upper().replace("-", "_").replace("/", "_")
    if env_key in os.environ:
        return os.environ[env_key]

    if boto3 and os.environ.get("USE_PARAMETER_STORE"):
        try:
            ssm = boto3.client("ssm", region_name=os.environ.get("AWS_REGION", "me-central-1"))
            path = os.environ.get("PARAMETER_STORE_PATH", "/homept/prod/")
            response = ssm.get_parameter(Name=f"{path}{name}", WithDecryption=True)
            return response["Parameter"]["Value"]
        except Exception:
            pass

    return default


class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")

    # Uploads (patient screenshots and clinical images)
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024
    MAX_PATIENT_IMAGES = int(os.environ.get("MAX_PATIENT_IMAGES", "10"))

    # OpenAI
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o")
    OPENAI_EXTRACTION_MODEL = os.environ.get("OPENAI_EXTRACTION_MODEL", "gpt-4o-mini")
    OPENAI_TIMEOUT = float(os.environ.get("OPENAI_TIMEOUT", "120"))

    # Output folders
    REPORTS_DIR = os.environ.get("REPORTS_DIR", "reports")
    BATCH_REPORTS_DIR = os.environ.get(
        "BATCH_REPORTS_DIR", os.path.join(os.path.expanduser("~"), "homePtReports")
    )

    # Batch processing; keep low, the OpenAI rate limits are per-minute
    BATCH_CHUNK_SIZE = int(os.environ.get("BATCH_CHUNK_SIZE", "2"))

    # Report constants
    HOSPITAL_NAME = os.environ.get("HOSPITAL_NAME", "Emirates International Hospital")
    DOCTOR_NAME = os.environ.get("DOCTOR_NAME", "Dr. Farhat El Rassi")
    DOCTOR_TITLE = os.environ.get("DOCTOR_TITLE", "Consultant Orthopedic Surgeon")
    DOH_LICENSE = os.environ.get("DOH_LICENSE", "DOH License No.: GD36956")
    FACILITY = os.environ.get("FACILITY", "Facility: Emirates International Hospital, Abu Dhabi, UAE")
    HOME_PHYSIO_FREQUENCY = "3 times per week"
    HOME_PHYSIO_DURATION = "6 months"
    REQUIRED_MEDICATIONS = ("Diclofenac gel topical", "Paracetamol 650 mg")

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # App Version
    APP_VERSION = os.environ.get("APP_VERSION", "2026.10")
    BUILD_TIME = os.environ.get("BUILD_TIME", "")
    GIT_COMMIT = os.environ.get("GIT_COMMIT", "")


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Override with Parameter Store in production
    SECRET_KEY = get_parameter("secret-key", Config.SECRET_KEY)
    OPENAI_API_KEY = get_parameter("openai-api-key", Config.OPENAI_API_KEY)


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    OPENAI_API_KEY = "test-key"
    REPORTS_DIR = os.path.join(os.environ.get("TMPDIR", "/tmp"), "homept_test_reports")
    BATCH_REPORTS_DIR = os.path.join(os.environ.get("TMPDIR", "/tmp"), "homept_test_batches")
    BATCH_CHUNK_SIZE = 2


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


@lru_cache()
def get_config(env: str = None):
    """Get configuration by environment name"""
    env = env or os.environ.get("FLASK_ENV", "development")
    return config.get(env, DevelopmentConfig)
