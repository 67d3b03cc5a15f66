import os
from dotenv import load_dotenv

load_dotenv(override=True)

MB = 1024 * 1024


class Config:
    """
    Base configuration for ZE News.
    Every value can be overridden via environment variables or by setting
    the key on app.config before ZeNews(app) is called.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', str(310 * MB)))

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database paths - use environment variables or fallback to DB_DIR
    NEWS_DB = os.getenv('NEWS_DB', os.path.join(DB_DIR, 'news.db'))
    LOG_DB = os.getenv('LOG_DB', os.path.join(DB_DIR, 'app_logs.db'))

    # Object storage: 'local' writes under the static folder, 'cloud' uses
    # any S3-compatible bucket (AWS, DigitalOcean Spaces, Supabase S3, MinIO)
    STORAGE_TYPE = os.getenv('STORAGE_TYPE', 'local')
    STORAGE_BUCKET = os.getenv('STORAGE_BUCKET', 'media')
    STORAGE_REGION = os.getenv('STORAGE_REGION', 'us-east-1')
    STORAGE_ENDPOINT_URL = os.getenv('STORAGE_ENDPOINT_URL')
    STORAGE_ACCESS_KEY = os.getenv('STORAGE_ACCESS_KEY')
    STORAGE_SECRET_KEY = os.getenv('STORAGE_SECRET_KEY')
    STORAGE_PUBLIC_URL = os.getenv('STORAGE_PUBLIC_URL')
    STORAGE_FOLDER = os.getenv('STORAGE_FOLDER', 'uploads')
    STORAGE_CONNECT_TIMEOUT = float(os.getenv('STORAGE_CONNECT_TIMEOUT', '10'))
    STORAGE_READ_TIMEOUT = float(os.getenv('STORAGE_READ_TIMEOUT', '300'))

    # Upload pipeline
    UPLOAD_MAX_ATTEMPTS = int(os.getenv('UPLOAD_MAX_ATTEMPTS', '3'))
    UPLOAD_BASE_DELAY = float(os.getenv('UPLOAD_BASE_DELAY', '1.0'))
    UPLOAD_VERIFY_URL = os.getenv('UPLOAD_VERIFY_URL', '0') == '1'
    UPLOAD_VERIFY_TIMEOUT = float(os.getenv('UPLOAD_VERIFY_TIMEOUT', '5'))
    MAX_IMAGE_SIZE = int(os.getenv('MAX_IMAGE_SIZE', str(50 * MB)))
    MAX_VIDEO_SIZE = int(os.getenv('MAX_VIDEO_SIZE', str(300 * MB)))
    MAX_DOCUMENT_SIZE = int(os.getenv('MAX_DOCUMENT_SIZE', str(10 * MB)))

    # Email settings
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'smtp')
    EMAIL_ADDRESS = os.getenv('EMAIL_ADDRESS') or os.getenv('EMAIL_USER')
    EMAIL_PASSWORD = os.getenv('EMAIL_PASSWORD')
    EMAIL_HOST = os.getenv('EMAIL_HOST', 'smtp.gmail.com')
    EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
    EMAIL_TIMEOUT = float(os.getenv('EMAIL_TIMEOUT', '30'))
    RESEND_API_KEY = os.getenv('RESEND_API_KEY')
    FACT_CHECK_EMAIL = os.getenv('FACT_CHECK_EMAIL', 'info@zennews.net')

    # Auth
    SIGNUP_DEFAULT_ROLE = os.getenv('SIGNUP_DEFAULT_ROLE', 'user')

    # Origins allowed to read the public JSON endpoints
    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',') if o.strip()]
