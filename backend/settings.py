"""Environment-sourced settings for the survey backend."""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Process settings read from the environment (and ``.env`` when present)."""

    # Database
    database_url: str = 'sqlite:///nomadic_survey.db'

    # Storage: LOCAL, GCP or S3
    storage_location: str = 'LOCAL'
    local_storage_path: str = './storage'
    gcp_public_bucket: str = 'nadf'
    gcp_private_bucket: str = 'nadf'
    gcp_project_id: Optional[str] = None
    gcp_client_email: Optional[str] = None
    gcp_private_key: Optional[str] = None
    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None
    s3_region: str = 'us-east-1'
    s3_public_bucket: Optional[str] = None
    s3_private_bucket: Optional[str] = None

    # Auth
    jwt_secret: Optional[str] = None
    jwt_expires_in_seconds: int = 86400

    # Mail
    resend_api_key: Optional[str] = None
    mail_from: str = 'onboarding@smms.dev'
    invitation_url: str = 'http://localhost:5173/accept-invitation'

    # HTTP
    cors_origins: str = 'http://localhost:5173,http://localhost:3000'

    log_level: str = 'INFO'

    class Config:
        env_file = '.env'
        case_sensitive = False
        extra = 'ignore'

    def to_flask_config(self):
        """Map settings onto the Flask config keys the app reads."""
        return {
            'SQLALCHEMY_DATABASE_URI': self.database_url,
            'STORAGE_LOCATION': self.storage_location.upper(),
            'LOCAL_STORAGE_PATH': self.local_storage_path,
            'GCP_PUBLIC_BUCKET': self.gcp_public_bucket,
            'GCP_PRIVATE_BUCKET': self.gcp_private_bucket,
            'GCP_PROJECT_ID': self.gcp_project_id,
            'GCP_CLIENT_EMAIL': self.gcp_client_email,
            # Keys pasted into env files usually carry literal \n sequences
            'GCP_PRIVATE_KEY': self.gcp_private_key.replace('\\n', '\n') if self.gcp_private_key else None,
            'S3_ACCESS_KEY': self.s3_access_key,
            'S3_SECRET_KEY': self.s3_secret_key,
            'S3_REGION': self.s3_region,
            'S3_PUBLIC_BUCKET': self.s3_public_bucket,
            'S3_PRIVATE_BUCKET': self.s3_private_bucket,
            'JWT_SECRET': self.jwt_secret,
            'JWT_EXPIRES_IN_SECONDS': self.jwt_expires_in_seconds,
            'RESEND_API_KEY': self.resend_api_key,
            'MAIL_FROM': self.mail_from,
            'INVITATION_URL': self.invitation_url,
            'CORS_ORIGINS': [origin.strip() for origin in self.cors_origins.split(',') if origin.strip()],
        }
