import os
import socket
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

# ----- Core -----
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-unsafe")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"

# Hosts / CSRF via env
_default_hosts = ["localhost", "127.0.0.1", "testserver", socket.gethostname(), socket.getfqdn()]
_extra_hosts = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if h.strip()]
ALLOWED_HOSTS = list({h.lower() for h in (_default_hosts + _extra_hosts)})

_default_csrf = ["http://localhost:8000", "http://127.0.0.1:8000", "http://localhost:3000"]
_extra_csrf = [o.strip() for o in os.getenv("DJANGO_CSRF_TRUSTED_ORIGINS", "").split(",") if o.strip()]
CSRF_TRUSTED_ORIGINS = _default_csrf + _extra_csrf

# ----- Apps -----
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_extensions",
    "import_export",
    "pdftemplates.apps.PdfTemplatesConfig",
    "dataimports.apps.DataImportsConfig",
    "submissions.apps.SubmissionsConfig",
    "erp.apps.ErpConfig",
    "dbmanager.apps.DbManagerConfig",
]

# ----- Middleware -----
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "PdfMapper.urls"

TEMPLATES = [{
    "BACKEND": "django.template.backends.django.DjangoTemplates",
    "DIRS": [],
    "APP_DIRS": True,
    "OPTIONS": {
        "context_processors": [
            "django.template.context_processors.debug",
            "django.template.context_processors.request",
            "django.contrib.auth.context_processors.auth",
            "django.contrib.messages.context_processors.messages",
        ],
    },
}]

WSGI_APPLICATION = "PdfMapper.wsgi.application"

# ----- DB (SQLite default) -----
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# Optional: override DB via DATABASE_URL (e.g., Postgres)
if os.getenv("DATABASE_URL"):
    import dj_database_url
    DATABASES["default"] = dj_database_url.parse(os.environ["DATABASE_URL"], conn_max_age=600, ssl_require=False)

# ----- Auth validators -----
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("DJANGO_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

# ----- Static / Media -----
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedStaticFilesStorage"},
}
WHITENOISE_USE_FINDERS = True

MEDIA_URL = "/media/"
MEDIA_ROOT = Path(os.getenv("DJANGO_MEDIA_ROOT", BASE_DIR / "media"))

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ----- Auth redirects -----
LOGIN_URL = "/admin/login/"

# ----- Logging (console) -----
LOG_LEVEL = os.getenv("DJANGO_LOG_LEVEL", "INFO")
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "simple"}},
    "loggers": {
        "": {"handlers": ["console"], "level": LOG_LEVEL},
        "PyPDF2": {"level": "ERROR"},
    },
}

# ----- Basic security defaults (HTTP on LAN; adjust for HTTPS in prod) -----
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False
SECURE_SSL_REDIRECT = False
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_SAMESITE = "Lax"

# ----- PDF generation -----
# Ghostscript executables tried in order when a template PDF cannot be parsed.
GHOSTSCRIPT_COMMANDS = [
    c.strip() for c in os.getenv("GHOSTSCRIPT_COMMANDS", "gs,gswin64c,gswin32c").split(",") if c.strip()
]
GHOSTSCRIPT_TIMEOUT = int(os.getenv("GHOSTSCRIPT_TIMEOUT", "60"))

# Bulk sessions live under MEDIA_ROOT/<BULK_SESSION_DIR>/<session_id>/
BULK_SESSION_DIR = os.getenv("BULK_SESSION_DIR", "generated")
TEMPLATE_UPLOAD_DIR = "templates"
DATA_IMPORT_DIR = "imports"
DATA_IMPORT_MAX_BYTES = int(os.getenv("DATA_IMPORT_MAX_BYTES", str(10 * 1024 * 1024)))
DEFAULT_SUBMISSION_TEMPLATE = os.getenv("DEFAULT_SUBMISSION_TEMPLATE", "user_profile")

# ----- ERPNext -----
ERP_BASE_URL = os.getenv("ERP_BASE_URL", "")
ERP_API_KEY = os.getenv("ERP_API_KEY", "")
ERP_API_SECRET = os.getenv("ERP_API_SECRET", "")
ERP_VERIFY_SSL = os.getenv("ERP_VERIFY_SSL", "1") == "1"
ERP_TIMEOUT = int(os.getenv("ERP_TIMEOUT", "30"))
